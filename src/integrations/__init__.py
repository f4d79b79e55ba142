"""
Third-party integrations: content engine, image search, speech, media storage.
"""

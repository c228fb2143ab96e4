"""
Services layer: job storage, dispatch and cleanup.
"""

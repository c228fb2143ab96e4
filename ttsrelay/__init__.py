"""
Text-to-speech job relay.
"""

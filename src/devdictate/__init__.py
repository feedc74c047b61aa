# devdictate - Developer dictation correction pipeline

"""
Turns raw speech-to-text output into the text a developer wants injected:
spoken symbols, spoken markdown, voice commands and AI rewrites.
"""

__version__ = "0.1.0"
__app_name__ = "devdictate"

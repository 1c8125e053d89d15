"""
Infrastructure layer: file I/O, encryption, watching and logging.
"""

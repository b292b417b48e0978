# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Exception classes for exifcomment

This module defines the exceptions raised by the UserComment codec and
by the container reader/writer.

A verification mismatch is never an exception. It is an ordinary
ComparisonResult returned by the reporter.

Copyright 2025 DNAi inc.
"""


class ExifCommentError(Exception):
    """
    Base exception for all exifcomment errors.
    
    All exifcomment exceptions inherit from this class, allowing
    catch-all error handling at the harness boundary.
    """
    def __init__(self, message: str = ""):
        """
        Initialize the exception with an optional error message.
        
        Args:
            message: Descriptive error message explaining what went wrong
        """
        self.message = message
        super().__init__(message)


class FormatError(ExifCommentError):
    """
    Raised when a UserComment byte buffer is malformed.
    
    This exception is raised when:
    - The buffer is shorter than the 8-byte character-code prefix
    - A prefix passed for lookup is not exactly 8 bytes long
    """
    pass


class EncodingError(ExifCommentError):
    """
    Raised when text cannot be represented in the requested character code.
    
    This exception is raised when:
    - Non-ASCII text is encoded with the ASCII character code
    - UNICODE text is encoded without a byte-order policy
    - Text contains unpaired surrogates
    - A character code has no text encoding (JIS, UNDEFINED on encode)
    - Payload bytes cannot be interpreted as text on request
    """
    pass


class UnsupportedCodeError(ExifCommentError):
    """
    Raised when a character code or 8-byte tag value is not known.
    
    The decoder tolerates unknown prefixes by classifying the record as
    UNDEFINED unless strict decoding is requested.
    """
    pass


class MetadataReadError(ExifCommentError):
    """
    Raised when EXIF tags cannot be read from a file.
    
    This exception is raised when:
    - File format is not JPEG, WebP or a bare EXIF blob
    - TIFF header or IFD structure is corrupted
    """
    pass


class MetadataWriteError(ExifCommentError):
    """
    Raised when EXIF tags cannot be written to a file.
    
    This exception is raised when:
    - The original container data is not a valid JPEG or WebP stream
    - A tag value cannot be serialized into an IFD entry
    
    Operating system failures (missing directory, permissions) are not
    wrapped; they propagate as OSError.
    """
    pass

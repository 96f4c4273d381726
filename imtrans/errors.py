from enum import Enum

class ErrorKind(Enum):
    ACQUISITION = "acquisition"
    RECOGNITION = "recognition"
    NO_TEXT = "no_text"
    TRANSLATION = "translation"
    TRANSPORT = "transport"
    INTERNAL = "internal"

class ImtransError(Exception):
    """Base class for failures surfaced to the status channel"""
    kind = ErrorKind.RECOGNITION

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""

class AcquisitionError(ImtransError):
    """Image could not be captured"""
    kind = ErrorKind.ACQUISITION

class RecognitionError(ImtransError):
    """OCR engine failed"""
    kind = ErrorKind.RECOGNITION

class NoTextDetectedError(ImtransError):
    """No text detected"""
    kind = ErrorKind.NO_TEXT

class TranslationError(ImtransError):
    """Translation failed"""
    kind = ErrorKind.TRANSLATION

class TransportError(TranslationError):
    """Translation service unreachable"""
    kind = ErrorKind.TRANSPORT

class UnexpectedError(ImtransError):
    """Unexpected error"""
    kind = ErrorKind.INTERNAL

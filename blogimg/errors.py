from __future__ import annotations


class BlogImgError(Exception):
    """Base class for failures that carry a user-facing message."""

    default_message = "Something went wrong."

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BlogImgError):
    default_message = "A required input is empty."


class AuthError(BlogImgError):
    default_message = "The API key is not valid. Check or create a key in Google AI Studio."


class ParseError(BlogImgError):
    default_message = "The model response did not match the expected JSON shape."


class MalformedImageError(BlogImgError):
    default_message = "The image data could not be decoded."


class NoImageProducedError(BlogImgError):
    default_message = "The model response did not contain an image."


class ServiceError(BlogImgError):
    default_message = "The generative service request failed."

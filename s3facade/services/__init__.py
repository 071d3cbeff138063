from .template import PresignedUrl, S3Template, build_template

__all__ = [
    "PresignedUrl",
    "S3Template",
    "build_template",
]

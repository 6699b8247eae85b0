"""Version control collaborators."""

from .metadata import GitMetadata, VCSMetadata

__all__ = ["GitMetadata", "VCSMetadata"]

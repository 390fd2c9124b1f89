"""mmsetup — build and install the pinned open-mmlab wheel stack."""

__version__ = "0.1.0"

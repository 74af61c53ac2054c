"""Layout domain - reversible canonical <-> device layout transforms."""

from .pipeline import (
    FORWARD_STEPS,
    REVERSE_STEPS,
    category_folder,
    relocate_auxiliary,
    relocate_metadata,
    rename_to_device,
    reverse_relocate_auxiliary,
    reverse_relocate_metadata,
    to_canonical_layout,
    to_device_layout,
    unrename_to_canonical,
)

__all__ = [
    "FORWARD_STEPS",
    "REVERSE_STEPS",
    "category_folder",
    "relocate_auxiliary",
    "relocate_metadata",
    "rename_to_device",
    "reverse_relocate_auxiliary",
    "reverse_relocate_metadata",
    "to_canonical_layout",
    "to_device_layout",
    "unrename_to_canonical",
]

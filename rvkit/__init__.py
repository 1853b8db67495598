"""Device tree, ACPI, kernel log and register-layout helpers for x86_64 and AArch64."""

__version__ = "0.1.0"

__all__ = [
    "acpi",
    "descriptors",
    "devtree",
    "fdt",
    "formatting",
    "interrupts",
    "klog",
    "multiboot",
    "paging",
    "properties",
    "registers",
]
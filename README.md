# rvkit

Pure-Python helpers for the data structures a small kernel deals with while
booting on x86_64 and AArch64. Everything works on bytes and integers you
pass in; nothing reads or writes hardware.

## Modules

- `rvkit.fdt` – `Fdt`, a read-only view of a flattened device tree blob:
  `check_header()`, `next_tag()`, `next_node()`, `subnodes()`,
  `property_offsets()`, `node_name()`, `property_at()` and `get_string()`.
  Failures raise `FdtError`, whose `code` is an `FdtErrorCode`.
- `rvkit.properties` – `get_property_type()` classifies a property name
  (exact names such as `reg` or `compatible`, and suffixes such as `-map` or
  `-cells`) as a `PropertyType`; `value_kinds()` gives its `ValueKind`s.
- `rvkit.formatting` – `format_property_value()` renders one value and
  `format_fdt()` renders a node of a blob and everything below it.
- `rvkit.devtree` – `build_tree()` turns a checked blob into `DeviceNode`
  objects holding `Property` values. Nodes can be searched from any node
  onward in pre-order with `find_by_name()`, `find_by_type()` (the
  `device_type` property) and `find_by_compatible()`; `find_property()`
  looks up a property, and `Property` reads strings and big-endian
  u8/u16/u32/u64 values and arrays. `DeviceNode.format()` renders a subtree.
- `rvkit.acpi` – `probe_rsdp()` searches a low-memory image for the
  `"RSD PTR "` signature, `table_type_from_signature()` names a table by its
  header as an `AcpiTable`, and `madt_controllers()` yields the type and bytes
  of each MADT interrupt-controller structure.
- `rvkit.klog` – `format_log()` expands `%d %u %x %c %s` with an optional
  zero flag and a one-digit width; `KernelLog` passes messages at or above
  its `LogLevel` to a sink (stdout by default) and writes a newline to the
  sink when created.
- `rvkit.descriptors` – `DescSelector` and `SegmentDescriptor` pack and
  unpack x86_64 selectors and segment descriptors; `idt_gate()`,
  `tss_descriptor_lower()`, `tss_descriptor_upper()` and
  `pack_pseudo_descriptor()` build gates, TSS descriptors and `lgdt`/`lidt`
  operands.
- `rvkit.paging` – `decode_entry()` and `encode_entry()` for every
  `EntryLayout` of x86_64 and AArch64 4K page tables, plus address helpers
  such as `x86_entry_address()` and `x86_cr3_pcid()`.
- `rvkit.multiboot` – `MultibootInfo.from_bytes()` parses the Multiboot
  information structure and `iter_mmap_entries()` yields `MmapEntry` regions.
- `rvkit.interrupts` – GICv2 ranges (`is_sgi()`, `is_ppi()`, `is_spi()`),
  `IrqSource`, `sgir_value()` and the trap-info helpers `trap_id()`,
  `trap_cpu()`, `trap_src_el()` and friends.
- `rvkit.registers` – AArch64 and x86_64 control register bits, `esr_class()`,
  `esr_iss()`, `esr_il()`, `tcr_ips_bits()` and `Mpidr.from_int()`.

The package has no runtime dependencies.

## Examples

Walk a device tree blob:

```python
from rvkit.fdt import Fdt
from rvkit.devtree import build_tree

with open("board.dtb", "rb") as fh:
    fdt = Fdt(fh.read())

root = build_tree(fdt)        # checks the header, raises FdtError if bad

psci = root.find_by_compatible("arm,psci")
if psci is not None:
    method = psci.find_property("method")
    if method is not None:
        print(method.as_string())

print(root.format(0))
```

Format a log line:

```python
from rvkit.klog import format_log

format_log("cpu %d at 0x%x\n", 1, 0x40000000)   # 'cpu 1 at 0x40000000\n'
format_log("[%04d]", 7)                          # '[0007]'
```

Decode an AArch64 exception syndrome:

```python
from rvkit.registers import esr_class, esr_iss

esr = 0x96000045
print(esr_class(esr), hex(esr_iss(esr)))   # EsrClass.CURR_EL_DATA_ABORT 0x45
```

## What it does not do

rvkit is a library only: it has no command-line tool. It reads device tree
blobs but does not write or modify them, and it does not access memory,
registers or devices itself — RSDP probing, table parsing and register
decoding all work on values supplied by the caller.

## Tests

The tests use pytest and are installed with the `test` extra.
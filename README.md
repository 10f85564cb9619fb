# xvsim

xvsim models the core pieces of a small Unix-like teaching kernel in plain
Python: x86 paging arithmetic and descriptor encoding, a two-level page
table over simulated physical memory, spin and sleep locks, system-call
argument fetching and dispatch with a tick clock, a first-fit user-space
allocator, an ELF header reader, the shell's command-line parser, and a
`wc` word counter.

It needs Python 3.10 or later and has no runtime dependencies.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

The package installs one command, `xvsim-wc`. It prints the number of
lines, words and bytes, followed by the name, for each file given, or for
standard input (with an empty name) when no file is given:

```
xvsim-wc README.md
```

If a file cannot be opened it prints `wc: cannot open <name>` and exits
with status 1; a read failure prints `wc: read error`.

## Modules

- `xvsim.params` – system limits (`NPROC`, `NOFILE`, `MAXARG`, ...), the
  memory layout constants (`KERNBASE`, `EXTMEM`, `PHYSTOP`, `DEVSPACE`),
  `v2p` and `p2v` for kernel/physical address translation, the enums
  `FileType`, `OpenFlag`, `SyscallNumber`, `TrapNumber` and `Irq`, and the
  `Stat` record.
- `xvsim.mmu` – paging constants and helpers (`pdx`, `ptx`, `pgaddr`,
  `pgroundup`, `pgrounddown`, `pte_addr`, `pte_flags`), and the
  `SegmentDescriptor` (`normal`, `seg16`) and `GateDescriptor` (`make`)
  dataclasses, each with `to_bytes` / `from_bytes` for the packed 8-byte
  form. Fields that do not fit their bit width raise `ValueError`.
- `xvsim.cstring` – NUL-terminated string and memory routines over
  `bytes`: `memcmp`, `memmove` (within one `bytearray`), `strncmp`,
  `strcmp`, `strncpy` and `safestrcpy` (which return the new field),
  `strlen`, `strchr` (index or `None`), `atoi`, and `gets` (one line from a
  binary stream).
- `xvsim.elf` – `ElfHeader.parse`, `ProgramHeader.parse` and
  `program_headers` for 32-bit little-endian images; malformed data raises
  `ElfFormatError`.
- `xvsim.umalloc` – `Allocator(limit)`, a first-fit, address-ordered,
  coalescing free list over a simulated heap that grows in steps of at
  least 4096 eight-byte units up to `limit` bytes. `malloc` raises
  `MemoryError` when the heap is full; `free` raises `ValueError` for an
  address it did not hand out; `free_blocks` lists the free blocks.
- `xvsim.wc` – `count(data)` and `count_stream(stream)` return a `Counts`
  of lines, words and bytes; `main` is the `xvsim-wc` command.
- `xvsim.shell` – `tokenize` and `parse_command`, producing a tree of
  `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`, or raising
  `ShellSyntaxError` (missing redirection target, unbalanced parentheses,
  too many arguments, leftover text).
- `xvsim.vm` – `PhysicalMemory(npages)` with `kalloc`, `kfree`, `read` and
  `write`, and `PageTable` with `walk`, `map_pages`, `init_uvm`,
  `alloc_uvm`, `dealloc_uvm`, `free`, `clear_pte_u`, `copy`, `uva2ka` and
  `copyout`. Running out of pages, or growing into the kernel half of the
  address space, raises `OutOfMemory`.
- `xvsim.locks` – `Cpu` with nested `push_cli` / `pop_cli`, `SpinLock`
  (`acquire`, `release`, `holding`, and the `held` context manager) and
  `SleepLock` (`acquire`, `release`, `holding` by process id). Misuse
  raises `LockError`.
- `xvsim.syscall` – `ProcessImage` fetches integers, pointers and strings
  from a process's memory (`fetch_int`, `fetch_str`, `arg_int`, `arg_ptr`,
  `arg_str`), raising `SyscallError` for bad addresses; `SyscallTable`
  registers handlers and `dispatch`es them, giving -1 for unknown numbers
  (with a message on its console, standard output by default) and for
  handlers that raise `SyscallError`; `Ticker` counts ticks and provides
  `uptime` and a `sleep` that stops with `SyscallError` when its `killed`
  callback turns true.

## Examples

Parse a shell line:

```python
from xvsim.shell import parse_command

tree = parse_command("cat < in.txt | wc > out.txt; echo done &")
```

Count a buffer:

```python
from xvsim.wc import count

counts = count(b"hello world\n")   # Counts(lines=1, words=2, chars=12)
```

Build a page table and grow a process:

```python
from xvsim.vm import PhysicalMemory, PageTable

memory = PhysicalMemory(64)
table = PageTable(memory)
size = table.alloc_uvm(0, 3 * 4096)
table.copyout(100, b"data")
```

Allocate from a bounded heap:

```python
from xvsim.umalloc import Allocator

heap = Allocator(1 << 20)
addr = heap.malloc(100)
heap.free(addr)
```

## What it does not do

xvsim is a set of separate building blocks, not a running system. It does
not boot, schedule or run processes, and it has no file system, buffer
cache, pipes or device drivers. The shell module only parses command lines
into a tree; it does not execute them. The system-call table comes with no
handlers installed: callers register their own.
"""Models of a small teaching kernel's paging, locks, system calls, allocator, ELF reader, shell parser and wc."""

__version__ = "0.1.0"
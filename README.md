# xvkit

Pure-Python models of the core mechanisms of a small x86 teaching kernel
and of its user-space library. Each module stands on its own and can be
used to explore or test how the mechanism behaves.

## Modules

- `xvkit.kstring` – C-style string and memory helpers working on bytes
  (strings are accepted and encoded as UTF-8): `memcmp`, `strcmp`,
  `strncmp`, `strncpy`, `safestrcpy`, `atoi`, and `gets`, which reads one
  line from a binary stream a byte at a time.
- `xvkit.umalloc` – `Allocator(heap_limit)`, a first-fit free-list heap
  allocator with coalescing. `malloc(nbytes)` returns an integer address and
  raises `MemoryError` when the heap cannot grow past `heap_limit`;
  `free(addr)` raises `ValueError` for an address that is not allocated;
  `free_blocks()` lists free spans as `(start, length)`; `heap_size` is the
  bytes obtained so far. The heap grows in chunks of at least 4096 header
  units.
- `xvkit.wc` – `count(stream)` returns a `WordCount` of lines, words and
  bytes; `WordCount.format(name)` renders it. `main` backs the `xvkit-wc`
  command.
- `xvkit.shell` – the shell's command grammar. `parse_cmd(line)` turns a
  line into a tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and
  `BackCmd`, raising `ShellSyntaxError` on bad input (its `leftovers`
  attribute holds unparsed text, when there is any). `Scanner` is the
  tokenizer, with `peek(toks)` and `next_token()`.
- `xvkit.mmu` – segment and gate descriptors (`SegDesc`, `GateDesc`, each
  with `pack()` giving the 8-byte form; `seg`, `seg16`, `seg_asm`,
  `setgate`), paging helpers (`pdx`, `ptx`, `pgaddr`, `pgroundup`,
  `pgrounddown`, `pte_addr`, `pte_flags`) and the kernel address layout
  (`v2p`, `p2v`, `KERNBASE`, `PHYSTOP`, ...).
- `xvkit.elf` – `ElfHeader.from_bytes` and `ProgHeader.from_bytes` parse
  32-bit little-endian ELF headers; `ElfHeader.program_headers(data)` reads
  the program header table. Bad input raises `ElfFormatError`. Both classes
  also have `to_bytes()`.
- `xvkit.traps` – the `Trap` and `Irq` enumerations and `irq_vector(irq)`.
- `xvkit.vm` – two-level page tables stored in a simulated
  `PhysicalMemory` frame pool (`kalloc`, `kfree`, `read`, `write`, raising
  `OutOfMemory` when empty). `PageDirectory` walks, maps, loads, grows
  (`alloc_user`), shrinks (`dealloc_user`), copies, and frees user address
  spaces and copies data out to user addresses; `setup_kernel_vm` builds a
  directory with the kernel mappings. Violated invariants raise
  `KernelPanic`.
- `xvkit.syscall` – system-call numbers (`Sys`), `Stat` and `FileType`,
  argument fetching from a process image (`ProcessMemory` with `fetch_int`,
  `fetch_str`, `arg_int`, `arg_ptr`, `arg_str`, raising `BadAddress`) and a
  `SyscallTable` whose `dispatch` raises `LookupError` for unknown numbers.
- `xvkit.locks` – `SpinLock` and `SleepLock`, held per thread and usable as
  context managers. Acquiring a `SpinLock` the thread already holds, or
  releasing one it does not hold, raises `LockError`; a `SleepLock` makes
  waiters sleep until it is released.

## Examples

```python
from xvkit.shell import parse_cmd, PipeCmd

tree = parse_cmd("cat README | grep the > out")
assert isinstance(tree, PipeCmd)
```

```python
from xvkit.vm import PhysicalMemory, PageDirectory

memory = PhysicalMemory(64)
pgdir = PageDirectory(memory)
size = pgdir.alloc_user(0, 8192)
pgdir.copy_out(100, b"hello")
```

## Command line

Count lines, words and bytes of files, or of standard input when no files
are given:

```
xvkit-wc notes.txt other.txt
```

Each output line reads `lines words bytes name`. A file that cannot be
opened stops the run with `wc: cannot open <name>` and exit status 1.

## What it does not do

This is a set of models, not a running system. There is no scheduler,
no processes, no file system and no device drivers. The shell module
parses command lines but does not run them, and the system-call table
dispatches to handlers you register yourself; none are supplied.

## Tests

```
pip install -e .[test]
pytest
```
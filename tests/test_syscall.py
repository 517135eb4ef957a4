import struct

import pytest

from xvkit.syscall import (
    BadAddress,
    FileType,
    ProcessMemory,
    Stat,
    Sys,
    SyscallTable,
)


def _memory_with_args(args, extra=b""):
    # stack at 0: return address, then arguments
    stack = struct.pack("<I", 0xDEAD) + b"".join(struct.pack("<i", a) for a in args)
    return ProcessMemory(stack + extra, 0)


def test_syscall_numbers_match_source():
    assert Sys(1) is Sys.FORK
    assert Sys(21).name == "CLOSE"
    assert Sys(22).name == "SETTICKETS"
    assert Sys(23).name == "GETPINFO"


def test_file_types():
    assert [FileType(n).name for n in (1, 2, 3)] == ["DIR", "FILE", "DEV"]
    st = Stat.from_bytes(Stat(FileType.DIR, 1, 1, 1, 0).to_bytes())
    assert st.type == FileType.DIR


def test_stat_round_trip():
    st = Stat(FileType.FILE, 1, 42, 2, 1234)
    assert Stat.from_bytes(st.to_bytes()) == st
    assert len(st.to_bytes()) == Stat.SIZE


def test_stat_from_short_data():
    with pytest.raises(ValueError):
        Stat.from_bytes(b"\0\0")


def test_fetch_int_reads_signed_word():
    mem = ProcessMemory(struct.pack("<ii", 7, -3), 0)
    assert mem.fetch_int(0) == 7
    assert mem.fetch_int(4) == -3


def test_fetch_int_out_of_bounds():
    mem = ProcessMemory(bytes(8), 0)
    with pytest.raises(BadAddress):
        mem.fetch_int(5)
    with pytest.raises(BadAddress):
        mem.fetch_int(8)


def test_fetch_str():
    mem = ProcessMemory(b"xxhello\0rest", 0)
    assert mem.fetch_str(2) == b"hello"
    assert mem.fetch_str(7) == b""


def test_fetch_str_errors():
    mem = ProcessMemory(b"abc", 0)
    with pytest.raises(BadAddress):
        mem.fetch_str(0)
    with pytest.raises(BadAddress):
        mem.fetch_str(3)


def test_arg_int_skips_return_address():
    mem = _memory_with_args([10, -20, 30])
    assert [mem.arg_int(i) for i in range(3)] == [10, -20, 30]
    with pytest.raises(BadAddress):
        mem.arg_int(3)


def test_arg_int_uses_esp():
    data = bytes(8) + struct.pack("<Ii", 0, 99)
    mem = ProcessMemory(data, 8)
    assert mem.arg_int(0) == 99


def test_arg_ptr_negative_address_rejected():
    mem = _memory_with_args([-1], bytes(16))
    with pytest.raises(BadAddress):
        mem.arg_ptr(0, 0)


def test_arg_str():
    mem = _memory_with_args([8], b"echo\0")
    assert mem.arg_str(0) == b"echo"


def test_dispatch_calls_handler():
    table = SyscallTable()
    table.register(Sys.GETPID, lambda: 5)
    assert table.dispatch(Sys.GETPID) == 5
    assert Sys.GETPID in table
    assert len(table) == 1


def test_dispatch_unknown_number():
    table = SyscallTable({Sys.FORK: lambda: 0})
    with pytest.raises(LookupError):
        table.dispatch(99)
    with pytest.raises(LookupError):
        table.dispatch(0)


def test_register_rejects_bad_numbers():
    table = SyscallTable()
    with pytest.raises(ValueError):
        table.register(0, lambda: 0)
    with pytest.raises(TypeError):
        table.register(1, 5)


def test_iteration_is_sorted():
    table = SyscallTable({Sys.WRITE: lambda: 0, Sys.FORK: lambda: 0})
    assert list(table) == [Sys.FORK, Sys.WRITE]
# labkit

Tools for two hands-on systems labs:

* **Bits**: helpers for 32-bit integer and single-precision float bit
  patterns, reference answers for a set of bit puzzles, and two small
  inspection commands (`fshow`, `ishow`).
* **Malloc lab**: a simulated heap with an `sbrk`-style break pointer, a
  simple allocator to improve on, and a trace-driven driver (`mdriver`) that
  checks an allocator for correctness, space use and throughput. Timing
  helpers (`labkit.fsecs`, `labkit.ftimer`, `labkit.cycles`, `labkit.fcyc`)
  come with it.

The package uses the standard library only and needs Python 3.10 or later.

## Installing

```
pip install .
pip install ".[test]"   # to run the test suite with pytest
```

## Bit patterns

`labkit.bitfmt` converts between floats and their 32-bit patterns and
describes them:

```python
from labkit import bitfmt

bitfmt.float_to_bits(1.0)          # 0x3f800000
bitfmt.bits_to_float(0x3f800000)   # 1.0
bitfmt.parse_value("0x10")         # 16
bitfmt.parse_value("-1")           # 0xffffffff
bitfmt.parse_value("1.5")          # bits of 1.5 as a float
print(bitfmt.describe_float(0x3f800000))
print(bitfmt.describe_int(0xffffffff))
```

`parse_value(text, allow_float)` accepts decimal, hex (`0x…`) and octal
(leading `0`) integers that fit in 32 bits, and, when `allow_float` is true,
floating-point text. It raises `ValueError` otherwise.

From the command line:

```
fshow 1.5 0x3f800000   # sign, exponent, fraction and value of each float
ishow -1 0x7fffffff    # hex, signed and unsigned views of each 32-bit word
```

With no arguments both print a usage message. `fshow` stops at the first
value it cannot read; `ishow` reports it and goes on.

## Reference puzzle answers

`labkit.reference` gives the expected result of each puzzle with 32-bit
two's complement semantics: `bit_xor`, `tmin`, `is_tmax`, `all_odd_bits`,
`negate`, `is_ascii_digit`, `conditional`, `is_less_or_equal`,
`logical_neg`, `how_many_bits`, `float_twice`, `float_i2f` and `float_f2i`,
plus `to_int32` to wrap a Python integer into 32 bits.

```python
from labkit import reference

reference.how_many_bits(12)          # 5
reference.how_many_bits(-5)          # 4
reference.how_many_bits(0)           # 1
reference.negate(-2**31)             # -2147483648
reference.float_f2i(0x7f800000)      # -2147483648 (out of range)
```

## Malloc lab

`labkit.memlib.SimulatedHeap` models the heap; addresses start at 0. `sbrk`
grows it and raises `OutOfMemory` past its maximum size, and `read`, `write`
and `fill` access bytes inside it. `labkit.mm.NaiveAllocator` is the starting
allocator: it only moves the break pointer forward and never reuses a block.
Team details live in `labkit.mm.Team`.

```python
from labkit.memlib import SimulatedHeap
from labkit.mm import NaiveAllocator

heap = SimulatedHeap(20 * (1 << 20))
allocator = NaiveAllocator(heap)
allocator.init()
p = allocator.malloc(100)
p = allocator.realloc(p, 200)
allocator.free(p)
```

Trace files start with four header numbers: the suggested heap size, the
number of block ids, the number of operations and the weight. Then come
operations: `a <id> <size>` allocates, `r <id> <size>` reallocates and
`f <id>` frees. `labkit.mtrace` parses them (`parse_trace`, `read_trace`)
and replays them: `eval_mm_valid` checks alignment, heap bounds, overlaps
and that realloc keeps the data, raising `MallocError`; `eval_mm_util`
returns peak payload over final heap size; `eval_mm_speed` replays without
checks for timing.

Run the driver:

```
mdriver -f short1-bal.rep   # a single trace file in the current directory
mdriver -t traces/          # the default trace set in a directory
mdriver -v                  # per-trace breakdown
mdriver -V                  # extra progress output
mdriver -l                  # also replay traces with Python's own allocation
mdriver -a                  # skip the team check
mdriver -g                  # summary lines for autograding
mdriver -h                  # usage
```

The performance index weights space utilization at 60% and throughput at
40%. Throughput stops counting once it reaches 600 Kops/s.

## Timing helpers

* `labkit.ftimer`: `ftimer_gettod(f, argp, n)` and `ftimer_itimer(f, argp, n)`
  return the average seconds per call of `f(argp)` over `n` runs.
* `labkit.fsecs.Timer`: `fsecs(f, argp)` averages over ten runs.
* `labkit.cycles.CycleCounter`: counts elapsed ticks of a clock (by default
  `time.perf_counter_ns`), estimates its rate (`mhz`, `mhz_full`) and can
  subtract timer-interrupt time (`start_compensated`, `get_compensated`).
* `labkit.fcyc`: `KBestSampler` keeps the k smallest samples; `Fcyc.measure`
  times a function until its k best times agree within epsilon or the sample
  limit is reached.

## What is not included

There is no file for writing your own puzzle solutions and no harness that
tests solutions against `labkit.reference`; the reference functions are there
to call and compare against yourself. There are also no image kernels and no
image benchmark driver.
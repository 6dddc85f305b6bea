# calvision

This package has building blocks for reading out a waveform digitizer and
for analysing the waveforms it records. It covers:

- unpacking bit fields and packed 12-bit channel samples from 32-bit words;
- reading and writing little-endian binary data, including a writer that
  saves to disk from a background thread;
- a pool of reusable byte blocks and a bounded single-producer,
  single-consumer queue;
- pulse-shape fits, pulse heights and integrals, photoelectron peak
  finding, zero suppression, noise estimates and trigger-time checks.

## Installation

```
pip install .
```

To install the test dependencies and run the tests:

```
pip install .[test]
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `calvision.constants` | Digitizer constants (`N_CHANNELS`, `N_SAMPLES`, `N_GROUPS`, ...) and `group_mask` |
| `calvision.bitmanip` | `read_uint`, `read_fields` and `read_8_channels` |
| `calvision.binary_io` | `BinaryReader` (`read_int`, `read_array`, `follow`) and `BinaryWriter` for little-endian words and typed arrays |
| `calvision.buffered_writer` | `DataBuffer` and `BufferedFileWriter`, a triple-buffered writer with a saving thread |
| `calvision.memory_pool` | `MemoryPool` of fixed-size `bytearray` blocks and `SPSCQueue` |
| `calvision.naming` | `canonical_name`, `name_timestamp`, `name_time`, `name_trigger`, `name_channel` |
| `calvision.timing` | `Stopwatch` (lap times in seconds) and `KeyListener`, which watches a text stream for one key |
| `calvision.pulse` | The `pulse` model, `PulseParams`, `PulseFitter`, `initial_pulse_guess`, `fit_pulse_shape`, `gain_bin_count`, `signal_polarity`, `pulse_heights`, `pulse_integrals` |
| `calvision.peaks` | `HedgehogParams` (comb of Gaussians), `extremum`, `locate_extrema`, `find_peaks` returning a `PeakFit` |
| `calvision.waveform` | `sample_times`, `scale_voltages`, `adc_bin_count`, `passes_suppression`, `calc_noise`, `Profile`, `average_waveform` |
| `calvision.desy` | `desy_bin_count`, `pulse_height_range`, `spr_pulse_heights`, `amplitude_ratios`, `normalize_shape`, `check_times` returning a `TimingReport` |

## Example

```python
import numpy as np
from calvision.bitmanip import read_8_channels
from calvision.waveform import average_waveform
from calvision.pulse import PulseFitter

samples = read_8_channels([0x12345678, 0x9ABCDEF0, 0x0FEDCBA9])

waveforms = np.load("waveforms.npy")          # shape (events, samples)
profile = average_waveform(waveforms, 0.2)    # 0.2 ns per sample
fit = PulseFitter(profile.centers(), profile.means())
print(fit.x_peak, fit.params.to_tuple(), fit.converged)
```

Bit fields are read from the most significant bit down:
`read_fields(word, 12, 12, 8)` returns three integers, and the field sizes
must add up to 32.

Writing with a background thread:

```python
from calvision.buffered_writer import BufferedFileWriter

with BufferedFileWriter("run.bin", capacity=4096) as writer:
    writer.write(range(10000))
```

Checking trigger times (in ns) against a 1 kHz trigger:

```python
from calvision.desy import check_times

report = check_times([0.0, 1e6, 2e6, 3.5e6], 1000.0)
print(report.num_bad, report.bad, report.wrapped)
```

## What it does not do

The package works on data already in memory or in its own binary files. It
does not talk to digitizer hardware, read or write ROOT files, draw plots or
canvases, and it provides no command-line program.
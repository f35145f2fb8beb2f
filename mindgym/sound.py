"""Feedback tones for MindGym.

Short 8-bit tones are synthesized into WAV files once at startup and
played with afplay. Playback is process-tracked so rapid answers cannot
pile up players.
"""

import os
import shutil
import struct
import subprocess
import tempfile
import threading
import wave

SAMPLE_RATE = 22050

# ── toggle flags (config can flip these) ─────────────────────────────
enabled: bool = True

# ── process tracking ─────────────────────────────────────────────────
_processes: list[subprocess.Popen] = []
_lock = threading.Lock()
_MAX_CONCURRENT = 4

_sfx_cache: dict[str, str] = {}
_sfx_dir: str = ""


def _triangle(freq: float, dur: float, vol: float = 1.0) -> list[float]:
    samples = []
    n = int(SAMPLE_RATE * dur)
    for i in range(n):
        t = i / SAMPLE_RATE
        phase = (t * freq) % 1.0
        val = (4 * abs(phase - 0.5) - 1) * vol
        env = min(1.0, i / (SAMPLE_RATE * 0.003))
        tail = max(0.0, 1.0 - (i / n) * 0.5)
        samples.append(val * env * tail)
    return samples


def _square(freq: float, dur: float, vol: float = 1.0, duty: float = 0.5) -> list[float]:
    samples = []
    n = int(SAMPLE_RATE * dur)
    for i in range(n):
        t = i / SAMPLE_RATE
        phase = (t * freq) % 1.0
        val = vol if phase < duty else -vol
        env = min(1.0, i / (SAMPLE_RATE * 0.003))
        tail = max(0.0, 1.0 - (i / n) * 0.8)
        samples.append(val * env * tail)
    return samples


def _write_wav(path: str, samples: list[float]):
    with wave.open(path, "w") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(SAMPLE_RATE)
        for s in samples:
            s = max(-0.95, min(0.95, s))
            w.writeframes(struct.pack("<h", int(s * 32767)))


def generate_sfx(volume: float = 0.3) -> dict[str, str]:
    """Generate all feedback sounds. Returns name -> WAV path."""
    global _sfx_dir
    _sfx_dir = tempfile.mkdtemp(prefix="mindgym-sfx-")
    v = volume

    tones = {
        # CORRECT -- short high blip
        "correct": _triangle(784, 0.06, v * 0.5),
        # WRONG -- low buzz, longer so it reads as an error
        "wrong": _square(180, 0.2, v * 0.4),
        # START -- rising chord (C5 -> E5 -> G5)
        "start": (_triangle(523, 0.06, v * 0.4) +
                  _triangle(659, 0.06, v * 0.45) +
                  _triangle(784, 0.06, v * 0.5)),
        # END -- jingle (C5 -> G5 -> C6)
        "end": (_triangle(523, 0.08, v * 0.5) +
                _triangle(784, 0.08, v * 0.55) +
                _triangle(1047, 0.25, v * 0.6)),
        # LEVEL_UP -- two quick rising notes
        "level_up": _triangle(659, 0.05, v * 0.5) + _triangle(988, 0.08, v * 0.55),
    }
    for name, samples in tones.items():
        path = os.path.join(_sfx_dir, f"{name}.wav")
        _write_wav(path, samples)
        _sfx_cache[name] = path
    return dict(_sfx_cache)


def _reap():
    """Drop finished processes so zombies do not accumulate."""
    with _lock:
        _processes[:] = [p for p in _processes if p.poll() is None]


def _play(filepath: str) -> None:
    _reap()
    with _lock:
        # kill oldest if too many concurrent
        while len(_processes) >= _MAX_CONCURRENT:
            old = _processes.pop(0)
            try:
                old.kill()
                old.wait()
            except OSError:
                pass
        try:
            p = subprocess.Popen(
                ["afplay", filepath],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            _processes.append(p)
        except OSError:
            pass


def play(name: str) -> None:
    """Play a generated sound non-blocking. Unknown names are ignored."""
    if not enabled:
        return
    wav = _sfx_cache.get(name)
    if wav and os.path.exists(wav):
        _play(wav)


def stop_all() -> None:
    """Kill all running audio; call on exit."""
    with _lock:
        for p in _processes:
            try:
                p.kill()
                p.wait()
            except OSError:
                pass
        _processes.clear()


def cleanup() -> None:
    global _sfx_dir
    stop_all()
    if _sfx_dir and os.path.isdir(_sfx_dir):
        shutil.rmtree(_sfx_dir, ignore_errors=True)
    _sfx_dir = ""
    _sfx_cache.clear()

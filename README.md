# voicetype

Dictation for the Linux desktop. VoiceType records from your microphone
with `arecord`, sends the recording to the Groq transcription API
(model `whisper-large-v3`) and types the resulting text at the cursor.

## Requirements

- Linux with ALSA (`arecord`, from `alsa-utils`) for recording.
- `xdotool` on X11, or `wtype` on Wayland, for typing the text.
- A Groq API key.
- Optional: `notify-send` or `dunstify` (notifications), `xinput` and
  `xmodmap` or `ydotool` (hotkey detection), `yad` or `zenity`
  (recording indicator), `aplay`, `file` and `sox` (microphone test).

## Installation

```
pip install .
```

## Usage

```
voicetype
```

On first start you are asked for your API key; it is stored in
`~/.voicetype.conf` (readable only by you) and read from there on later
runs. The command then reads lines from the terminal: press **Enter** on
an empty line to start recording, and **Enter** again to stop. The
recording is transcribed in the background and the text is typed at the
cursor, followed by Enter unless you pass `--no-return` or `auto_return`
is `false` in the config file. Press Ctrl+C to quit.

Options:

- `--device NAME` – ALSA capture device (default: `default`)
- `--no-return` – do not press Enter after typing
- `--help` – show usage

### Checking your microphone

```
voicetype-mic-test --duration 3s --output test_recording.wav --play
```

- `--duration` – recording length, e.g. `3s`, `500ms`, `1m30s` (default 3s)
- `--output` – WAV file to write (default `test_recording.wav`)
- `--play` – play the recording back afterwards with `aplay`
- `--info` – only show details about the output file
- `--list` – only list capture devices

Recording uses `arecord`, or `rec` from sox when `arecord` is missing.

## Configuration

`voicetype.config.load()` starts from defaults, merges
`~/.config/voicetype/config.json` and then these environment variables:

| Variable                   | Meaning                                 |
|----------------------------|-----------------------------------------|
| `GROQ_API_KEY`             | API key                                 |
| `VOICE_TYPE_HOTKEY`        | hotkey name (default `ctrl+space`)      |
| `VOICE_TYPE_AUDIO_DEVICE`  | capture device                          |
| `VOICE_TYPE_MODEL`         | model (default `whisper-large-v3`)      |
| `VOICE_TYPE_TEMPERATURE`   | sampling temperature                    |
| `VOICE_TYPE_NOTIFICATIONS` | `0` disables notifications              |
| `VOICE_TYPE_VERBOSE`       | `1` enables verbose output              |

`Config.save()` writes the settings back as JSON. Of these settings the
`voicetype` command uses only `auto_return`: it takes the API key from
`~/.voicetype.conf`, the device from `--device`, and always uses the
client's default model.

## Library use

The pieces can be used on their own:

```python
from voicetype.wav import encode
from voicetype.api import Client

wav_bytes = encode(pcm_bytes, 16000, 1, 16)
with Client("placeholder", None) as client:
    text = client.transcribe(pcm_bytes)  # raw 16 kHz mono 16-bit PCM
```

- `voicetype.audio.AudioSystem` records raw PCM through `arecord`;
  `level()` reports the current input level and `save_to_file()` writes
  a WAV file.
- `voicetype.typist.TextTyper` types text with `wtype` or `xdotool`.
- `voicetype.hotkey.HotkeyListener` polls `xinput` (Ctrl+Space) or
  `ydotool` and calls back on press and release.
- `voicetype.notify.Notifier` sends desktop notifications.
- `voicetype.indicator.RecordingIndicator` shows a "Recording..." icon
  with `yad` or `zenity`.
- `voicetype.logger.Logger` writes JSON-lines logs;
  `voicetype.errors` holds the error types and an error `Handler`.

## What it does not do

There is no graphical window: the `voicetype` command is driven from the
terminal only. The hotkey listener, notifier and recording indicator are
library pieces; the command does not use them, so there is no global
hotkey while another window has focus.
import pytest

from narration import Narrator, Voice, choose_voice, parse_voices, speech_rate

LISTING = """\
Pty Language       Age/Gender VoiceName          File          Other Languages
 5  af              --/M      Afrikaans          gmw/af
 5  de              --/M      German             gmw/de
 2  en-gb           --/M      English_(Great_Britain) gmw/en     (en 2)
 5  en-us           --/M      English_(America)  gmw/en-US     (en 3)
"""


def test_parse_voices():
    voices = parse_voices(LISTING)
    assert [v.language for v in voices] == ["af", "de", "en-gb", "en-us"]
    assert voices[3].name == "English_(America)"


def test_choose_voice_prefers_configured_order():
    voices = parse_voices(LISTING)
    assert choose_voice(voices).language == "en-gb"
    assert choose_voice(voices, ["English_(America)"]).language == "en-us"


def test_choose_voice_fallbacks():
    others = [Voice("German", "de"), Voice("English_(Scotland)", "en-gb-scotland")]
    assert choose_voice(others, ["fr"]).language == "en-gb-scotland"
    assert choose_voice([Voice("German", "de")], ["fr"]).language == "de"
    assert choose_voice([], ["fr"]) is None


@pytest.mark.parametrize("words, rate", [
    (150, 50 / 60),     # 50 s at rate 1 → stretch to 60 s
    (300, 1.4),         # clamped high
    (60, 0.6),          # clamped low
])
def test_speech_rate(words, rate):
    assert speech_rate(words, 60.0) == pytest.approx(rate)


def test_command_line():
    n = Narrator(binary="espeak")
    cmd = n.command("hello there", 50 / 60, Voice("English_(Great_Britain)", "en-gb"))
    assert cmd == ["espeak", "-v", "en-gb", "-s", "150", "-p", "45", "-a", "100", "hello there"]

    assert "-v" not in n.command("hi", 1.0, None)


def test_missing_binary_is_not_an_error():
    n = Narrator(binary="espeak-that-does-not-exist-213")
    assert not n.available
    assert n.speak("hello") is None
    assert not n.speaking
    n.stop()

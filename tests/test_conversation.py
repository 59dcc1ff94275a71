from __future__ import annotations

from analyst.conversation import PERSONA_ACK, PERSONA_PREAMBLE, Turn, build_history, persona_for


def test_persona_is_a_synthetic_exchange() -> None:
    history = build_history([Turn("user", "hi"), Turn("model", "hello")], persona="Be brief.")

    assert history == [
        {"role": "user", "parts": [{"text": PERSONA_PREAMBLE + "Be brief."}]},
        {"role": "model", "parts": [{"text": PERSONA_ACK}]},
        {"role": "user", "parts": [{"text": "hi"}]},
        {"role": "model", "parts": [{"text": "hello"}]},
    ]


def test_no_persona_no_preamble() -> None:
    assert build_history([Turn("user", "hi")], persona="") == [{"role": "user", "parts": [{"text": "hi"}]}]
    assert build_history([]) == []


def test_other_roles_become_model() -> None:
    history = build_history([Turn("assistant", "x"), Turn("system", None)])

    assert [h["role"] for h in history] == ["model", "model"]
    assert history[1]["parts"][0]["text"] == ""


def test_persona_for_adds_name_line() -> None:
    prompt = persona_for("Be brief.", "Ada Lovelace")

    assert prompt.startswith("Be brief.\n\nThe user's name is Ada Lovelace.")
    assert persona_for("Be brief.") == "Be brief."

import prompt_renderer
import pytest
from jinja2 import DictLoader, Environment, StrictUndefined
from jinja2.exceptions import UndefinedError
from processing.rule_engine import BANNED_CLICHES
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models import EssayType


class Person(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    display_name: str
    nickname: str | None = None


def _use_templates(monkeypatch, templates: dict[str, str]) -> None:
    env = Environment(
        loader=DictLoader(templates), autoescape=False, undefined=StrictUndefined
    )
    env.filters["tojson"] = prompt_renderer._tojson
    monkeypatch.setattr(prompt_renderer, "_env", env)


def test_render_prompt_with_custom_env(monkeypatch):
    _use_templates(monkeypatch, {"greet.j2": "  Hello {{ name }}\n\n"})
    assert prompt_renderer.render_prompt("greet.j2", {"name": "Bob"}) == "Hello Bob"


def test_tojson_uses_camel_case_and_drops_none(monkeypatch):
    _use_templates(monkeypatch, {"obj.j2": "{{ person | tojson }}"})
    result = prompt_renderer.render_prompt(
        "obj.j2", {"person": Person(display_name="Alice")}
    )
    assert result == '{"displayName": "Alice"}'


def test_tojson_serializes_enums(monkeypatch):
    _use_templates(monkeypatch, {"obj.j2": "{{ value | tojson }}"})
    result = prompt_renderer.render_prompt("obj.j2", {"value": EssayType.UC_PIQ})
    assert result == '"uc_piq"'


def test_missing_variable_is_an_error(monkeypatch):
    _use_templates(monkeypatch, {"greet.j2": "Hello {{ name }}"})
    with pytest.raises(UndefinedError):
        prompt_renderer.render_prompt("greet.j2", {})


def test_judge_system_prompt_lists_banned_words():
    rendered = prompt_renderer.render_prompt(
        "quality_judge_agent/system.j2",
        {"banned_words": BANNED_CLICHES, "max_words": 350},
    )
    assert "350-word budget" in rendered
    for word in BANNED_CLICHES:
        assert word in rendered

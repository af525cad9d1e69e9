from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from commandbridge.domain.normalizer import normalize_arguments, normalize_options
from commandbridge.domain.operations import ParameterKind, ParameterSpec

_names = st.text(alphabet=st.characters(min_codepoint=97, max_codepoint=122), min_size=1, max_size=8)
_scalar = st.one_of(st.none(), st.just(""), st.just("0"), st.text(max_size=6))
_value = st.one_of(_scalar, st.lists(_scalar, max_size=4))

option_specs = st.lists(
    st.builds(
        ParameterSpec,
        name=_names,
        kind=st.just(ParameterKind.OPTION),
        accepts_value=st.booleans(),
    ),
    max_size=6,
    unique_by=lambda spec: spec.name,
)


def _blank(value: object) -> bool:
    return value is None or value == ""


@settings(max_examples=100)
@given(specs=option_specs, raw=st.dictionaries(_names, _value, max_size=8))
def test_normalize_options_never_emits_blank_values(specs: list[ParameterSpec], raw: dict) -> None:
    normalized = normalize_options(raw, specs)
    declared = {spec.name: spec for spec in specs}
    for name, value in normalized.items():
        assert name in declared
        assert name in raw
        assert not _blank(value)
        if isinstance(value, list):
            assert value and not any(_blank(item) for item in value)
        if not declared[name].accepts_value:
            assert value is True


@settings(max_examples=100)
@given(raw=st.dictionaries(_names, _value, max_size=8))
def test_normalize_arguments_never_emits_blank_values(raw: dict) -> None:
    for value in normalize_arguments(raw).values():
        assert not _blank(value)
        if isinstance(value, list):
            assert value and not any(_blank(item) for item in value)

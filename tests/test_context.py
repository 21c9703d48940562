import time

import pytest

from plaintext_converter.context import ConversionContext, ConversionFailure
from plaintext_converter.models import ConversionOptions, LinkMode


def test_nested_tracks_and_restores_depth() -> None:
    context = ConversionContext(max_depth=2)
    with context.nested():
        assert context.depth == 1
        with context.nested():
            assert context.depth == 2
    assert context.depth == 0


def test_expired_deadline_raises_timeout() -> None:
    context = ConversionContext(deadline=time.perf_counter() - 1)
    with pytest.raises(ConversionFailure) as exc:
        context.ensure_deadline("tags")
    assert exc.value.code == "TIMEOUT"


def test_zero_timeout_disables_deadline() -> None:
    context = ConversionContext.start(timeout_s=0)
    context.ensure_deadline("tags")
    assert context.deadline == float("inf")


def test_options_validation_and_narrowing() -> None:
    options = ConversionOptions(links="TABLE", width=70)
    assert options.links is LinkMode.TABLE
    assert options.narrowed().width == 68
    assert ConversionOptions(width=1).narrowed().width == 0
    assert ConversionOptions(width=0).ruler_width == 25
    assert ConversionOptions(links=False).show_links is False
    with pytest.raises(ValueError):
        ConversionOptions(width=-1)
    with pytest.raises(ValueError):
        ConversionOptions(links="carrier-pigeon")

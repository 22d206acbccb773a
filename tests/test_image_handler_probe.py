"""Tests for image handler capability probing."""

from __future__ import annotations

from pathlib import Path

import pytest

from imaging.drivers import FakeImagingFactory
from imaging.host import FakeHostFacts
from imaging.models import ImageHandlerDescriptor
from imaging.service import REQUIRED_IMAGE_FORMATS, probe_all

GD = ImageHandlerDescriptor(driver_name="Gd", description="Gd", required_extension="gd")
IMAGICK = ImageHandlerDescriptor(driver_name="Imagick", description="Imagick", required_extension="imagick")
VIPS_EXTENSION = ImageHandlerDescriptor(driver_name="Vips", description="ext", required_extension="vips")
VIPS_ABI = ImageHandlerDescriptor(
    driver_name="Vips",
    description="abi",
    required_configuration={"ffi.enable": "true", "stack_size": "-1"},
)


def test_gd_missing_imagick_ready() -> None:
    result = probe_all(
        [GD, IMAGICK],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(extensions={"imagick"}),
        FakeImagingFactory(available_drivers={"Gd", "Imagick"}),
    )

    gd, imagick = list(result)
    assert gd.descriptor is GD
    assert gd.is_ready is False
    assert gd.status_details == ('Python extension "gd" is not loaded.',)
    assert imagick.is_ready is True
    assert imagick.status_details == ()
    assert result.preferred_driver_name() == "Imagick"
    assert result.is_ready("Gd") is False


def test_format_failure_is_reported_per_format_and_driver() -> None:
    result = probe_all(
        [GD, IMAGICK],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(extensions={"gd", "imagick"}),
        FakeImagingFactory(available_drivers={"Gd", "Imagick"}, unsupported_formats={"Gd": {"gif"}}),
    )

    gd, imagick = list(result)
    assert gd.is_ready is False
    assert len(gd.status_details) == 1
    assert gd.status_details[0].startswith('Image format "gif" not supported:')
    assert "no decode delegate for gif" in gd.status_details[0]
    assert imagick.is_ready is True


def test_every_failing_format_is_recorded_in_declared_order() -> None:
    result = probe_all(
        [GD],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(extensions={"gd"}),
        FakeImagingFactory(available_drivers={"Gd"}, unsupported_formats={"Gd": {"png", "jpg"}}),
    )

    details = result[0].status_details
    assert [detail.split('"')[1] for detail in details] == ["jpg", "png"]


def test_unrestricted_descriptor_is_ready() -> None:
    descriptor = ImageHandlerDescriptor(driver_name="Gd", description="plain")

    result = probe_all(
        [descriptor],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(),
        FakeImagingFactory(available_drivers={"Gd"}),
    )

    assert result[0].is_ready is True
    assert result[0].status_details == ()


def test_one_entry_per_descriptor_in_input_order() -> None:
    descriptors = [VIPS_ABI, GD, VIPS_EXTENSION, IMAGICK]

    result = probe_all(descriptors, REQUIRED_IMAGE_FORMATS, FakeHostFacts(), FakeImagingFactory())

    assert [entry.descriptor for entry in result] == descriptors
    assert result.ready_count() + result.unavailable_count() == len(result) == 4


def test_reasons_follow_discovery_order() -> None:
    descriptor = ImageHandlerDescriptor(
        driver_name="Vips",
        description="everything missing",
        required_extension="vips",
        required_configuration={"b.first": "on", "a.second": "true"},
    )

    result = probe_all([descriptor], REQUIRED_IMAGE_FORMATS, FakeHostFacts(), FakeImagingFactory())

    details = result[0].status_details
    assert len(details) == 4
    assert details[0] == 'Python extension "vips" is not loaded.'
    assert details[1] == 'Imaging driver "Vips" is not available.'
    assert details[2].startswith('Configuration "b.first" is not set to "on", but to "" instead.')
    assert details[3].startswith('Configuration "a.second"')


def test_requirement_failure_skips_image_decoding() -> None:
    result = probe_all(
        [GD],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(),
        FakeImagingFactory(available_drivers={"Gd"}, unsupported_formats={"Gd": {"jpg", "gif", "png"}}),
    )

    assert result[0].status_details == ('Python extension "gd" is not loaded.',)


@pytest.mark.parametrize(
    ("actual", "ready"),
    [("1", True), ("true", True), ("0", False), ("yes", False), ("TRUE", False), (None, False)],
)
def test_true_expectation_accepts_one(actual: str | None, ready: bool) -> None:
    descriptor = ImageHandlerDescriptor(
        driver_name="Vips",
        description="abi",
        required_configuration={"ffi.enable": "true"},
    )
    configuration = {} if actual is None else {"ffi.enable": actual}

    result = probe_all(
        [descriptor],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(configuration=configuration),
        FakeImagingFactory(available_drivers={"Vips"}),
    )

    assert result[0].is_ready is ready


def test_one_is_not_normalized_for_other_expectations() -> None:
    descriptor = ImageHandlerDescriptor(
        driver_name="Vips",
        description="abi",
        required_configuration={"stack_size": "-1"},
    )

    result = probe_all(
        [descriptor],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(configuration={"stack_size": "1"}),
        FakeImagingFactory(available_drivers={"Vips"}),
    )

    assert result[0].is_ready is False


def test_configuration_mismatch_includes_values_and_hint() -> None:
    result = probe_all(
        [VIPS_ABI],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(configuration={"ffi.enable": "true", "stack_size": "0"}),
        FakeImagingFactory(available_drivers={"Vips"}),
    )

    (detail,) = result[0].status_details
    assert 'Configuration "stack_size" is not set to "-1", but to "0" instead.' in detail
    assert detail.endswith("export stack_size=-1")


def test_duplicate_driver_ready_in_one_install_mode() -> None:
    result = probe_all(
        [GD, VIPS_EXTENSION, VIPS_ABI],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(extensions={"gd"}, configuration={"ffi.enable": "1", "stack_size": "-1"}),
        FakeImagingFactory(available_drivers={"Gd", "Vips"}),
    )

    assert [entry.is_ready for entry in result] == [True, False, True]
    assert result.is_ready("Vips") is True
    assert result.preferred_driver_name() == "Vips"
    assert result.driver_names() == ["Gd", "Vips"]


def test_driver_creation_failure_is_a_reason() -> None:
    class _BrokenFactory(FakeImagingFactory):
        def create_driver(self, name: str):
            raise RuntimeError("backend crashed")

    result = probe_all(
        [GD],
        REQUIRED_IMAGE_FORMATS,
        FakeHostFacts(extensions={"gd"}),
        _BrokenFactory(available_drivers={"Gd"}),
    )

    assert result[0].is_ready is False
    assert "backend crashed" in result[0].status_details[0]


def test_empty_descriptor_list() -> None:
    result = probe_all([], REQUIRED_IMAGE_FORMATS, FakeHostFacts(), FakeImagingFactory())

    assert len(result) == 0
    assert result.ready_count() == 0
    assert result.preferred_driver_name() is None


def test_missing_sample_image_is_fatal(tmp_path: Path) -> None:
    samples = {"jpg": tmp_path / "missing.jpg"}

    with pytest.raises(OSError):
        probe_all([GD], samples, FakeHostFacts(extensions={"gd"}), FakeImagingFactory(available_drivers={"Gd"}))


def test_probe_recomputes_every_call() -> None:
    host = FakeHostFacts()
    factory = FakeImagingFactory(available_drivers={"Gd"})

    before = probe_all([GD], REQUIRED_IMAGE_FORMATS, host, factory)
    host.extensions.add("gd")
    after = probe_all([GD], REQUIRED_IMAGE_FORMATS, host, factory)

    assert before[0].is_ready is False
    assert after[0].is_ready is True

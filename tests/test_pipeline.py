"""
Tests for processing steps and the transparency pipeline.

Covers: step purity, conditional steps, metadata, artifacts, settings
validation and determinism.
"""

import numpy as np
import pytest

from errors import BufferAcquisitionError, InvalidSettingValueError
from processing import (
    ContrastStep,
    InkSettings,
    Pipeline,
    PixelBuffer,
    ResizeStep,
    TransparencyStep,
    build_pipeline,
    process_pixels,
    run_pipeline,
)


def _paper_with_stroke(height=40, width=60):
    """Light paper with a dark horizontal stroke through the middle."""
    img = np.full((height, width, 4), 235, dtype=np.uint8)
    img[..., 3] = 255
    img[height // 2 - 2:height // 2 + 2, 5:width - 5, :3] = 30
    return img


class TestInkSettings:
    """Tests for InkSettings validation."""

    def test_defaults_are_valid(self):
        InkSettings().validate()

    @pytest.mark.parametrize("field,value", [
        ("alpha_threshold", -1),
        ("alpha_threshold", 256),
        ("feathering_range", 51),
        ("contrast_adjustment", -101),
        ("contrast_adjustment", 101),
        ("max_width", -5),
    ])
    def test_out_of_range_raises(self, field, value):
        settings = InkSettings(**{field: value})
        with pytest.raises(InvalidSettingValueError, match=field):
            settings.validate()

    def test_non_integral_float_raises(self):
        with pytest.raises(InvalidSettingValueError, match="whole number"):
            InkSettings(alpha_threshold=12.5).validate()

    def test_whole_number_floats_become_ints(self):
        settings = InkSettings(max_width=10.0, alpha_threshold=150.0)
        settings.validate()
        assert settings.max_width == 10
        assert type(settings.max_width) is int
        assert type(settings.alpha_threshold) is int

    def test_bool_for_numeric_raises(self):
        with pytest.raises(InvalidSettingValueError, match="integer"):
            InkSettings(alpha_threshold=True).validate()

    def test_non_bool_flag_raises(self):
        with pytest.raises(InvalidSettingValueError, match="boolean"):
            InkSettings(invert_processing=1).validate()

    def test_effective_grayscale(self):
        assert InkSettings(convert_to_grayscale=True).effective_convert_to_grayscale
        assert not InkSettings(
            convert_to_grayscale=True, preserve_ink_color=True
        ).effective_convert_to_grayscale

    def test_frozen(self):
        settings = InkSettings()
        with pytest.raises(AttributeError):
            settings.alpha_threshold = 10


class TestSteps:
    """Tests for individual step classes."""

    def test_resize_step_metadata(self):
        step = ResizeStep(max_width=30)
        out = step.apply(_paper_with_stroke())
        assert out.shape == (20, 30, 4)
        meta = step.get_metadata()
        assert meta["scale_factor"] == 2.0
        assert meta["step_status"] == "applied"
        assert meta["step_metrics"]["target_size"] == (30, 20)

    def test_resize_step_declined_when_small(self):
        step = ResizeStep(max_width=1000)
        step.apply(_paper_with_stroke())
        meta = step.get_metadata()
        assert meta["step_status"] == "declined"
        assert meta["skip_artifact"] is True

    def test_contrast_step_keeps_alpha(self):
        img = _paper_with_stroke()
        img[0, 0, 3] = 17
        out = ContrastStep(contrast=50).apply(img)
        assert out[0, 0, 3] == 17
        assert not np.array_equal(out[..., :3], img[..., :3])

    def test_transparency_step_metrics(self):
        img = _paper_with_stroke()
        step = TransparencyStep(settings=InkSettings())
        step.apply(img)
        metrics = step.get_metadata()["step_metrics"]
        assert metrics["total_pixels"] == 40 * 60
        assert metrics["ink_pixels"] == 4 * 50
        assert metrics["opaque_pixels"] == 4 * 50
        assert metrics["feathered_pixels"] == 0

    @pytest.mark.parametrize("step", [
        ResizeStep(max_width=25),
        ContrastStep(contrast=-40),
        TransparencyStep(settings=InkSettings(feathering_range=10)),
    ])
    def test_steps_do_not_mutate_input(self, step):
        img = _paper_with_stroke()
        before = img.copy()
        step.apply(img)
        assert np.array_equal(img, before)

    def test_step_names(self):
        assert ResizeStep(max_width=800).name == "resize(800x0)"
        assert ContrastStep(contrast=20).name == "contrast(20)"
        assert TransparencyStep(settings=InkSettings()).name == "transparency"


class TestBuildPipeline:
    """Tests for conditional step selection."""

    def test_default_is_transparency_only(self):
        pipeline = build_pipeline(InkSettings())
        assert [s.name for s in pipeline] == ["transparency"]

    def test_resize_and_contrast_added_when_set(self):
        pipeline = build_pipeline(InkSettings(max_height=100, contrast_adjustment=15))
        assert [s.name for s in pipeline] == ["resize(0x100)", "contrast(15)", "transparency"]

    def test_contrast_not_applied_twice(self):
        pipeline = build_pipeline(InkSettings(contrast_adjustment=15))
        assert pipeline.steps[-1].settings.contrast_adjustment == 0

    def test_separate_contrast_step_matches_single_pass(self):
        img = _paper_with_stroke()
        settings = InkSettings(contrast_adjustment=35, feathering_range=12)
        staged = build_pipeline(settings).run(img).final
        direct = process_pixels(img, settings)
        assert np.array_equal(staged, direct)


class TestPipelineRun:
    """Tests for Pipeline.run results and artifacts."""

    def test_intermediates_kept(self):
        pipeline = Pipeline(steps=[
            ContrastStep(contrast=10),
            TransparencyStep(settings=InkSettings()),
        ])
        result = pipeline.run(_paper_with_stroke())
        assert result.get_intermediate("contrast(10)") is not None
        assert result.get_intermediate("missing") is None
        assert result.final is result.steps[-1].image

    def test_empty_pipeline_returns_original(self):
        img = _paper_with_stroke()
        result = Pipeline(steps=[]).run(img)
        assert np.array_equal(result.final, img)
        assert result.scale_factor == 1.0

    def test_artifacts_written(self, tmp_path):
        pipeline = build_pipeline(InkSettings(max_width=30, contrast_adjustment=10))
        result = pipeline.run(_paper_with_stroke(), artifact_dir=str(tmp_path))
        paths = result.artifact_paths
        assert set(paths) == {"original", "resize", "contrast", "transparency"}
        for path in paths.values():
            assert (tmp_path / path.rsplit("/", 1)[-1]).exists()

    def test_declined_resize_has_no_artifact(self, tmp_path):
        pipeline = build_pipeline(InkSettings(max_width=1000))
        result = pipeline.run(_paper_with_stroke(), artifact_dir=str(tmp_path))
        assert "resize" not in result.artifact_paths
        assert result.step_metadata["resize"]["status"] == "declined"


class TestRunPipeline:
    """End-to-end tests for run_pipeline."""

    def test_output_dimensions_without_bounds(self):
        buf = PixelBuffer.from_array(_paper_with_stroke())
        result = run_pipeline(buf)
        assert result.processed.size == buf.size
        assert not result.was_resized

    def test_resized_output(self):
        buf = PixelBuffer.from_array(_paper_with_stroke())
        result = run_pipeline(buf, InkSettings(max_width=30))
        assert result.processed.size == (30, 20)
        assert result.was_resized
        assert result.metadata["scale_factor"] == 2.0

    def test_paper_becomes_transparent(self):
        buf = PixelBuffer.from_array(_paper_with_stroke())
        out = run_pipeline(buf).processed.to_array()
        assert out[0, 0].tolist() == [255, 255, 255, 0]
        assert out[20, 30].tolist() == [30, 30, 30, 255]

    def test_ink_pixel_count(self):
        buf = PixelBuffer.from_array(_paper_with_stroke())
        assert run_pipeline(buf).ink_pixel_count == 200

    def test_original_untouched(self):
        arr = _paper_with_stroke()
        buf = PixelBuffer.from_array(arr)
        result = run_pipeline(buf, InkSettings(contrast_adjustment=60))
        assert result.original is buf
        assert np.array_equal(buf.to_array(), arr)

    def test_deterministic(self):
        buf = PixelBuffer.from_array(_paper_with_stroke())
        settings = InkSettings(feathering_range=20, contrast_adjustment=-10, max_width=45)
        first = run_pipeline(buf, settings).processed
        second = run_pipeline(buf, settings, workers=4).processed
        assert first == second

    def test_whole_number_float_bound_resizes(self):
        buf = PixelBuffer.from_array(np.zeros((40, 40, 4), dtype=np.uint8))
        result = run_pipeline(buf, InkSettings(max_width=10.0))
        assert result.processed.size == (10, 10)

    def test_invalid_settings_raise_before_processing(self):
        buf = PixelBuffer.from_array(_paper_with_stroke())
        with pytest.raises(InvalidSettingValueError):
            run_pipeline(buf, InkSettings(feathering_range=99))

    def test_non_buffer_raises(self):
        with pytest.raises(BufferAcquisitionError, match="Expected PixelBuffer"):
            run_pipeline(_paper_with_stroke())

import pytest

from kargo.processor import OutputProcessor


@pytest.fixture
def processor():
    return OutputProcessor()


def test_error_line_is_tagged(processor):
    line = "error[E0308]: mismatched types"
    assert processor.process_line(line) == "ERROR: " + line


def test_warning_line_is_tagged(processor):
    line = "warning: unused variable"
    assert processor.process_line(line) == "WARNING: " + line


def test_compiling_line_is_transformed(processor):
    line = "   Compiling serde v1.0.0"
    assert processor.process_line(line) == "COMPILING: " + line


def test_test_result_line_is_transformed(processor):
    line = "test parser::works ... ok"
    assert processor.process_line(line) == "TEST: " + line


def test_plain_line_is_unchanged(processor):
    assert processor.process_line("Finished dev profile") == "Finished dev profile"


def test_custom_pattern_and_transformation(processor):
    processor.add_pattern("finished", r"^\s*Finished")
    processor.add_transformation("finished", "DONE")
    assert processor.process_line("    Finished release") == "DONE:     Finished release"


def test_pattern_without_transformation_leaves_line(processor):
    processor.add_pattern("running", r"^Running")
    assert processor.process_line("Running tests") == "Running tests"


def test_invalid_pattern_raises(processor):
    with pytest.raises(ValueError, match="Invalid regex pattern"):
        processor.add_pattern("bad", "(unclosed")


def test_short_output_has_no_summary(processor):
    output = "error: first\nplain\nwarning: second\n"
    assert processor.process_output(output) == (
        "ERROR: error: first\nplain\nWARNING: warning: second"
    )


def test_long_output_line_count_preserved(processor):
    output = "\n".join(f"line {i}" for i in range(25))
    result = processor.process_output(output)
    assert result == output


def test_long_output_summary_counts_processed_matches(processor):
    processor.add_pattern("error", r"(?m)^ERROR")
    output = "\n".join(["ERROR here"] * 21)
    result = processor.process_output(output)
    assert result.endswith("\nSUMMARY: 21 error(s) found")
    assert result.startswith("ERROR: ERROR here\n")


def test_empty_output(processor):
    assert processor.process_output("") == ""
import matplotlib
import pytest

matplotlib.use("Agg")


@pytest.fixture
def trace_file(tmp_path):
    """Write trace text to a temp file and return its path."""
    def _write(text, name="trace.t"):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write

from __future__ import annotations

import contextlib
import importlib.util
import io
import json
import math
from pathlib import Path
import sys
import tempfile
import unittest
from unittest import mock


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None
REPO_ROOT = Path(__file__).resolve().parent.parent
EXAMPLE_PATH = REPO_ROOT / "examples" / "example.bs"
SCRIPT_PATH = REPO_ROOT / "scripts" / "sample_script.py"
BENCH_UTILS_PATH = REPO_ROOT / "benchmarks" / "_bench_utils.py"


def _load_cli():
    spec = importlib.util.spec_from_file_location("sample_script", SCRIPT_PATH)
    if spec is None or spec.loader is None:
        raise RuntimeError("Unable to load sample_script module")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for system-surface tests")
class SystemSurfaceTests(unittest.TestCase):
    def test_build_wraps_parse_errors(self) -> None:
        from boenthoescript import BoenthoeError, ScriptParseError, build
        from boenthoescript.parser import ParseError

        with self.assertRaises(ScriptParseError) as ctx:
            build("out x = hold(1 2)")
        err = ctx.exception
        self.assertIsInstance(err, BoenthoeError)
        self.assertIsInstance(err.__cause__, ParseError)
        self.assertEqual((err.line, err.column), (1, 16))
        self.assertIn("line 1, column 16", str(err))

    def test_build_errors_share_base_class(self) -> None:
        from boenthoescript import BoenthoeError, BuildError, build

        with self.assertRaises(BuildError) as ctx:
            build("out x = nope()")
        self.assertIsInstance(ctx.exception, BoenthoeError)

    def test_parse_is_cached_per_source(self) -> None:
        from boenthoescript import build
        from boenthoescript.script import parse_cache_info

        source = "out cached = hold(7, 1)\n"
        build(source)
        before = parse_cache_info().hits
        build(source)
        self.assertEqual(parse_cache_info().hits, before + 1)

    def test_script_set_time_and_get(self) -> None:
        from boenthoescript import Script, Vector

        script = Script.from_source("out fade = linear(0, [1, 2], 2)\nout flat = hold([3, 3, 3], 1)")
        self.assertEqual(script.names, ("fade", "flat"))
        self.assertEqual(script.duration(), 2.0)

        self.assertEqual(script.get("fade"), Vector.zero())
        script.set_time(1.0)
        self.assertEqual(script.time, 1.0)
        self.assertEqual(script.get("fade").xy(), (0.5, 1.0))
        self.assertEqual(script["flat"].xyz(), (3.0, 3.0, 3.0))
        self.assertEqual(script.get("missing"), Vector.zero())

    def test_script_duration_with_loop_and_empty(self) -> None:
        from boenthoescript import Script

        self.assertEqual(Script.from_source("out l = loop(hold(1, 1))").duration(), math.inf)
        self.assertEqual(Script.from_source("").duration(), 0.0)

    def test_load_from_file(self) -> None:
        from boenthoescript import load

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "fade.bs"
            path.write_text("out fade = linear(0, 1, 2)\n", encoding="utf-8")
            script = load(path)
        script.set_time(0.5)
        self.assertEqual(script.get("fade").x(), 0.25)

    def test_invalid_utf8(self) -> None:
        from boenthoescript import ScriptEncodingError, load
        from boenthoescript.script import decode_source

        with self.assertRaises(ScriptEncodingError) as ctx:
            decode_source(b"out x = \xff")
        self.assertEqual(ctx.exception.valid_up_to, 8)

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bad.bs"
            path.write_bytes(b"\xc3(")
            with self.assertRaises(ScriptEncodingError):
                load(path)

    def test_example_script_builds(self) -> None:
        from boenthoescript import load

        script = load(EXAMPLE_PATH)
        self.assertEqual(
            script.names,
            ("title.color", "title.opacity", "camera.pos", "strobe", "pulse"),
        )

        script.set_time(0.5)
        self.assertEqual(script.get("title.color"), script.get("missing"))
        self.assertEqual(script.get("pulse").x(), 1.0)

        script.set_time(3.0)
        self.assertEqual(script.get("title.color").xyzw(), (1.0, 1.0, 1.0, 1.0))
        self.assertEqual(script.get("camera.pos").xyz()[0], 0.0)
        self.assertEqual(script.get("strobe").x(), 0.0)

    def test_sample_script_cli(self) -> None:
        module = _load_cli()
        with tempfile.TemporaryDirectory() as tmpdir:
            out_path = Path(tmpdir) / "samples.json"
            argv = ["sample_script.py", str(EXAMPLE_PATH), "--end", "1", "--step", "0.5", "--json-out", str(out_path)]
            stdout = io.StringIO()
            with mock.patch.object(sys, "argv", argv), contextlib.redirect_stdout(stdout):
                code = module.main()
            self.assertEqual(code, 0)
            payload = json.loads(out_path.read_text(encoding="utf-8"))

        self.assertEqual(payload["times"], [0.0, 0.5, 1.0])
        self.assertEqual(len(payload["exports"]["pulse"]), 3)
        self.assertIn("At 0.500:", stdout.getvalue())

    def test_sample_script_cli_reports_errors(self) -> None:
        module = _load_cli()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.bs"
            path.write_text("out x = hold(1,", encoding="utf-8")
            argv = ["sample_script.py", str(path)]
            stderr = io.StringIO()
            with mock.patch.object(sys, "argv", argv), contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(stderr):
                code = module.main()
        self.assertEqual(code, 1)
        self.assertIn("Could not parse", stderr.getvalue())

    def test_sample_script_cli_rejects_non_positive_step(self) -> None:
        module = _load_cli()
        for step in ("0", "-0.5"):
            with self.subTest(step=step):
                argv = ["sample_script.py", str(EXAMPLE_PATH), "--step", step]
                stderr = io.StringIO()
                with mock.patch.object(sys, "argv", argv), contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(stderr):
                    with self.assertRaises(SystemExit) as ctx:
                        module.main()
                self.assertEqual(ctx.exception.code, 2)
                self.assertIn("--step must be positive", stderr.getvalue())

    def test_benchmark_timing_helpers(self) -> None:
        spec = importlib.util.spec_from_file_location("_bench_utils", BENCH_UTILS_PATH)
        if spec is None or spec.loader is None:
            raise RuntimeError("Unable to load _bench_utils module")
        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        spec.loader.exec_module(module)

        from boenthoescript import build, sample

        curve = build("out c = loop(linear(0, 1, 1))")["c"]
        timing = module.time_call(sample, curve, [0.0, 0.5], target_sample_ms=0.5, warmup=1, samples=3)
        self.assertGreaterEqual(timing.repeats, 1)
        self.assertEqual(len(timing.samples_ms), 3)
        self.assertTrue(all(ms >= 0.0 for ms in timing.samples_ms))
        self.assertLessEqual(timing.quantile_ms(0.5), timing.quantile_ms(0.95))

        fixed = module.Timing(repeats=1, samples_ms=(1.0, 2.0, 3.0))
        self.assertEqual(fixed.mean_ms, 2.0)
        self.assertEqual(fixed.stdev_ms, 1.0)
        self.assertEqual(fixed.quantile_ms(0.5), 2.0)
        self.assertEqual(module.Timing(repeats=1, samples_ms=(4.0,)).quantile_ms(0.95), 4.0)
        self.assertIn("backend", module.host_metadata())


if __name__ == "__main__":
    unittest.main()

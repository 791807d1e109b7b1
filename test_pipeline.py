"""Tests for the producer / worker pool / collector pipeline."""
import asyncio
import io
from collections import Counter

import pytest
from rich.console import Console

from concurrentResolver.resolver.output import ResultCollector
from concurrentResolver.resolver.pipeline import resolve_line, run_pipeline


class StubResolver:
    """Maps domains to IPs; optional per-domain delays reorder completions."""

    def __init__(self, records=None, delays=None, failures=()):
        self.records = records or {}
        self.delays = delays or {}
        self.failures = set(failures)
        self.calls = Counter()

    async def resolve(self, domain):
        self.calls[domain] += 1
        await asyncio.sleep(self.delays.get(domain, 0))
        if domain in self.failures:
            raise RuntimeError(f"resolver blew up on {domain}")
        return self.records.get(domain)


EXAMPLE_LINES = ["example.com", "http://example.com", "bad..domain"]
EXAMPLE_RECORDS = {"example.com": "93.184.216.34"}


def run(lines, resolver, mode="domain-ip", concurrency=4, sink=None):
    sink = sink if sink is not None else io.StringIO()
    echo = io.StringIO()
    collector = ResultCollector(mode, sink, console=Console(file=echo, width=200))
    stats = asyncio.run(run_pipeline(lines, resolver, collector, concurrency=concurrency))
    return stats, sink.getvalue().splitlines(), echo.getvalue().splitlines()


def test_domain_ip_example():
    stats, lines, echoed = run(EXAMPLE_LINES, StubResolver(EXAMPLE_RECORDS), mode="domain-ip")

    assert Counter(lines) == Counter({
        "example.com,93.184.216.34": 2,
        "bad..domain,Could not resolve": 1,
    })
    assert echoed == lines
    assert stats.lines_read == 3
    assert stats.outcomes == 3
    assert stats.resolved == 2
    assert stats.unresolved == 1
    assert stats.emitted == 3


def test_ip_example():
    stats, lines, echoed = run(EXAMPLE_LINES, StubResolver(EXAMPLE_RECORDS), mode="ip")

    assert lines == ["93.184.216.34"]
    assert echoed == lines
    assert stats.unique_ips == 1
    assert stats.emitted == 1


@pytest.mark.parametrize("concurrency", [1, 2, 7, 100])
def test_one_outcome_per_line_for_any_worker_count(concurrency):
    inputs = [f"host{i % 13}.example" for i in range(60)] + ["", "   "]
    records = {f"host{i}.example": f"10.0.0.{i}" for i in range(0, 13, 2)}
    delays = {f"host{i}.example": 0.001 * (i % 3) for i in range(13)}

    stats, lines, _ = run(inputs, StubResolver(records, delays), concurrency=concurrency)

    assert stats.lines_read == len(inputs)
    assert stats.outcomes == len(inputs)
    assert len(lines) == len(inputs)
    assert lines.count(",Could not resolve") == 2


def test_worker_count_does_not_change_outcome_set():
    inputs = [f"https://www.site{i}.example/page" for i in range(25)]
    records = {f"site{i}.example": f"192.0.2.{i}" for i in range(0, 25, 3)}
    delays = {f"site{i}.example": 0.002 * ((i * 7) % 4) for i in range(25)}

    _, serial, _ = run(inputs, StubResolver(records, delays), concurrency=1)
    _, parallel, _ = run(inputs, StubResolver(records, delays), concurrency=10)

    assert Counter(serial) == Counter(parallel)


def test_output_follows_completion_order():
    resolver = StubResolver(
        {"slow.example": "10.1.1.1", "fast.example": "10.2.2.2"},
        delays={"slow.example": 0.05},
    )
    _, lines, _ = run(["slow.example", "fast.example"], resolver, mode="ip", concurrency=2)

    assert lines == ["10.2.2.2", "10.1.1.1"]


def test_ip_mode_never_repeats_an_ip():
    inputs = [f"alias{i}.example" for i in range(40)]
    records = {f"alias{i}.example": f"10.9.0.{i % 5}" for i in range(40)}

    stats, lines, _ = run(inputs, StubResolver(records), mode="ip", concurrency=8)

    assert sorted(lines) == [f"10.9.0.{i}" for i in range(5)]
    assert stats.unique_ips == 5
    assert stats.resolved == 40


def test_empty_input_terminates_cleanly():
    stats, lines, echoed = run([], StubResolver(), mode="ip")

    assert lines == []
    assert echoed == []
    assert stats.lines_read == 0
    assert stats.outcomes == 0


def test_lazy_line_source_is_fully_drained():
    def lines():
        for n in range(25):
            yield f"host{n}.example\n"

    resolver = StubResolver({f"host{n}.example": f"10.1.0.{n}" for n in range(25)})
    stats, lines_out, _ = run(lines(), resolver, mode="ip", concurrency=2)

    assert stats.lines_read == 25
    assert sorted(lines_out) == sorted(f"10.1.0.{n}" for n in range(25))


def test_worker_error_becomes_unresolved_outcome():
    resolver = StubResolver({"ok.example": "10.3.3.3"}, failures={"boom.example"})

    stats, lines, _ = run(["boom.example", "ok.example"], resolver, concurrency=2)

    assert sorted(lines) == ["boom.example,Could not resolve", "ok.example,10.3.3.3"]
    assert stats.outcomes == 2


def test_read_error_keeps_processed_lines():
    def lines():
        yield "example.com"
        yield "www.example.com"
        raise OSError("disk went away")

    stats, out, _ = run(lines(), StubResolver(EXAMPLE_RECORDS), concurrency=3)

    assert out == ["example.com,93.184.216.34", "example.com,93.184.216.34"]
    assert stats.lines_read == 2
    assert stats.read_error == "disk went away"


def test_sink_failure_propagates_and_stops_workers():
    class BrokenSink(io.StringIO):
        def write(self, s):
            raise OSError("disk full")

    inputs = [f"n{i}.example" for i in range(50)]
    records = {f"n{i}.example": f"10.4.0.{i}" for i in range(50)}

    with pytest.raises(OSError, match="disk full"):
        run(inputs, StubResolver(records), mode="ip", concurrency=2, sink=BrokenSink())


def test_zero_workers_rejected():
    collector = ResultCollector("ip", io.StringIO(), console=Console(file=io.StringIO()))
    with pytest.raises(ValueError):
        asyncio.run(run_pipeline(["example.com"], StubResolver(), collector, concurrency=0))


def test_resolve_line_builds_outcome():
    resolver = StubResolver(EXAMPLE_RECORDS)
    outcome = asyncio.run(resolve_line("https://www.example.com/x", resolver))

    assert outcome.input == "https://www.example.com/x"
    assert outcome.domain == "example.com"
    assert outcome.ip == "93.184.216.34"
    assert resolver.calls["example.com"] == 1

"""Tests for provider connectivity probes."""

import asyncio

from askai.engine import ConnectivityProber, PROBE_PROMPT

from conftest import FakeLauncher, FakeResponse, make_config, make_engine


class TestConnectivityProber:

    def setup_method(self):
        self.launcher = FakeLauncher()
        self.engine = make_engine(self.launcher)
        self.prober = ConnectivityProber(self.engine)

    def test_working_provider(self):
        self.launcher.script("alpha", FakeResponse(stdout="OK"))

        outcome = asyncio.run(self.prober.test("alpha"))

        assert outcome == (True, "alpha is working correctly")
        assert self.launcher.launches == [["alpha", "-p", PROBE_PROMPT]]

    def test_any_non_empty_reply_counts(self):
        self.launcher.script("alpha", FakeResponse(stdout="Sure! OK."))

        success, message = asyncio.run(self.prober.test("alpha"))

        assert success is True
        assert "working correctly" in message

    def test_default_provider_when_none_given(self):
        self.launcher.script("alpha", FakeResponse(stdout="OK"))

        outcome = asyncio.run(self.prober.test())

        assert outcome == (True, "alpha is working correctly")

    def test_failure_returns_underlying_message(self):
        self.launcher.script("alpha", FakeResponse(exit_code=1, stderr="not logged in"))
        self.launcher.script("beta", FakeResponse(stdout="OK"))

        success, message = asyncio.run(self.prober.test("alpha"))

        assert success is False
        assert "not logged in" in message
        # A probe never succeeds through another provider
        assert self.launcher.programs == ["alpha"]

    def test_probe_uses_probe_timeout(self):
        engine = make_engine(self.launcher, make_config(probe_timeout_sec=0.05, timeout_sec=5))
        self.launcher.script("alpha", FakeResponse(stdout="OK", delay=5.0))

        success, message = asyncio.run(ConnectivityProber(engine).test("alpha"))

        assert success is False
        assert "timed out after 0.05s" in message

    def test_unknown_provider(self):
        success, message = asyncio.run(self.prober.test("nope"))

        assert success is False
        assert message == "Unknown provider: nope"

    def test_all_enabled_providers(self):
        self.launcher.script("alpha", FakeResponse(stdout="OK"))
        self.launcher.script("beta", FakeResponse(exit_code=1, stderr="quota"))

        outcomes = asyncio.run(self.prober.test_all())

        assert set(outcomes) == {"alpha", "beta"}
        assert outcomes["alpha"] == (True, "alpha is working correctly")
        assert outcomes["beta"][0] is False

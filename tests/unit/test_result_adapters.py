# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the result report adapters."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ldg.adapters import (
    CucumberJsonAdapter,
    JUnitAdapter,
    NUnit2Adapter,
    NUnitAdapter,
    TrxAdapter,
    XUnitAdapter,
)
from ldg.execution import ResultParseError


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


CUCUMBER_REPORT = [
    {
        "uri": "features/cart.feature",
        "name": "Shopping cart",
        "elements": [
            {
                "type": "background",
                "name": "",
                "line": 6,
                "steps": [
                    {"keyword": "Given ", "name": "an empty cart", "line": 7,
                     "result": {"status": "passed", "duration": 1_000_000}},
                ],
            },
            {
                "type": "scenario",
                "name": "Add one item",
                "line": 10,
                "tags": [{"name": "@smoke"}],
                "before": [{"result": {"status": "passed", "duration": 5}}],
                "steps": [
                    {"keyword": "When ", "name": "I add an apple", "line": 11,
                     "result": {"status": "passed", "duration": 2_000_000_000}},
                    {"keyword": "Then ", "name": "the cart holds 1 item", "line": 12,
                     "result": {"status": "failed", "duration": 500_000_000,
                                "error_message": "expected 1\nbut was 0"}},
                ],
            },
        ],
    }
]


def test_res_001_cucumber_json_folds_background_and_converts_durations(
    tmp_path: Path,
) -> None:
    path = tmp_path / "cucumber.json"
    _write_file(path, json.dumps(CUCUMBER_REPORT))
    adapter = CucumberJsonAdapter()

    assert adapter.can_parse(path)
    records = adapter.parse(path)

    assert len(records) == 1
    record = records[0]
    assert record.scenario_name == "Add one item"
    assert record.feature_path == "features/cart.feature"
    assert record.feature_name == "Shopping cart"
    assert record.line == 10
    assert record.status == "failed"
    assert [step.status for step in record.steps] == ["passed", "passed", "failed"]
    assert record.duration == pytest.approx(2.501)
    assert record.error_message == "expected 1"
    assert record.tags == ["@smoke"]


def test_res_002_cucumber_json_failing_hook_fails_scenario(tmp_path: Path) -> None:
    path = tmp_path / "hooks.json"
    report = [
        {
            "uri": "a.feature",
            "name": "A",
            "elements": [
                {
                    "type": "scenario",
                    "name": "Hooked",
                    "line": 3,
                    "after": [{"result": {"status": "failed", "error_message": "teardown"}}],
                    "steps": [
                        {"keyword": "Given ", "name": "x",
                         "result": {"status": "passed", "duration": 0}},
                    ],
                },
                {"type": "scenario", "name": "Empty", "line": 8, "steps": []},
            ],
        }
    ]
    _write_file(path, json.dumps(report))

    hooked, empty = CucumberJsonAdapter().parse(path)

    assert hooked.status == "failed"
    assert hooked.error_message == "teardown"
    assert [step.status for step in hooked.steps] == ["passed"]
    assert empty.status == "passed"


def test_res_003_cucumber_json_rejects_non_list_payload(tmp_path: Path) -> None:
    path = tmp_path / "object.json"
    _write_file(path, '{"features": []}')
    broken = tmp_path / "broken.json"
    _write_file(broken, "[{")

    assert not CucumberJsonAdapter().can_parse(path)
    with pytest.raises(ResultParseError):
        CucumberJsonAdapter().parse(path)
    with pytest.raises(ResultParseError) as exc_info:
        CucumberJsonAdapter().parse(broken)
    assert exc_info.value.file_path == str(broken)


JUNIT_REPORT = """\
<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="Shopping cart" tests="3">
    <properties>
      <property name="feature.file" value="features/cart.feature"/>
    </properties>
    <testcase classname="Shopping cart" name="Add one item" time="0.25">
      <system-out>
Given an empty cart.........................................passed
When I add an apple.........................................passed
Then the cart holds 1 item..................................failed
      </system-out>
      <failure message="expected 1 but was 0">stack line</failure>
    </testcase>
    <testcase classname="Shopping cart" name="Remove item" time="0.1">
      <skipped message="The scenario has undefined step(s)"/>
    </testcase>
    <testcase classname="Shopping cart" name="Empty cart" time="0.1"
              file="features/empty.feature" line="7"/>
  </testsuite>
</testsuites>
"""


def test_res_004_junit_maps_cases_steps_and_outcomes(tmp_path: Path) -> None:
    path = tmp_path / "TEST-cart.xml"
    _write_file(path, JUNIT_REPORT)
    adapter = JUnitAdapter()

    assert adapter.can_parse(path)
    add, remove, empty = adapter.parse(path)

    assert add.status == "failed"
    assert add.feature_path == "features/cart.feature"
    assert add.feature_name == "Shopping cart"
    assert add.error_message == "expected 1 but was 0"
    assert add.stack_trace == "stack line"
    assert add.duration == pytest.approx(0.25)
    assert [(s.keyword, s.status) for s in add.steps] == [
        ("Given", "passed"),
        ("When", "passed"),
        ("Then", "failed"),
    ]
    assert remove.status == "undefined"
    assert empty.status == "passed"
    assert empty.feature_path == "features/empty.feature"
    assert empty.line == 7


def test_res_005_junit_rejects_bad_line_and_malformed_xml(tmp_path: Path) -> None:
    bad_line = tmp_path / "line.xml"
    _write_file(
        bad_line,
        '<testsuite name="s"><testcase name="c" file="a.feature" line="x"/></testsuite>',
    )
    malformed = tmp_path / "malformed.xml"
    _write_file(malformed, "<testsuite><testcase></testsuite>")

    with pytest.raises(ResultParseError, match="invalid line attribute"):
        JUnitAdapter().parse(bad_line)
    assert not JUnitAdapter().can_parse(tmp_path / "missing.xml")
    with pytest.raises(ResultParseError):
        JUnitAdapter().parse(malformed)


NUNIT_REPORT = """\
<?xml version="1.0" encoding="utf-8"?>
<test-run id="2" result="Failed">
  <test-suite type="Assembly" name="Shop.Specs.dll">
    <test-suite type="TestFixture" name="ShoppingCartFeature" fullname="Shop.Specs.ShoppingCartFeature">
      <properties>
        <property name="Description" value="Shopping cart"/>
        <property name="Category" value="cart"/>
      </properties>
      <test-case name="AddOneItem" methodname="AddOneItem" result="Passed"
                 duration="0.120" start-time="2026-01-05T10:00:00Z">
        <properties>
          <property name="Description" value="Add one item"/>
          <property name="Category" value="smoke"/>
        </properties>
        <output><![CDATA[Given an empty cart
-> done: CartSteps.GivenAnEmptyCart() (0.0s)
When I add an apple
-> done: CartSteps.WhenIAdd() (0.0s)
]]></output>
      </test-case>
      <test-case name="RemoveItem(&quot;apple&quot;)" methodname="RemoveItem" result="Inconclusive"
                 duration="0.010">
        <reason><message>Step is pending</message></reason>
      </test-case>
      <test-case name="Checkout" methodname="Checkout" result="Failed" label="Error"
                 duration="0.5">
        <failure><message>boom</message><stack-trace>at Checkout()</stack-trace></failure>
      </test-case>
    </test-suite>
  </test-suite>
</test-run>
"""


def test_res_006_nunit_maps_fixtures_descriptions_and_output(tmp_path: Path) -> None:
    path = tmp_path / "TestResult.xml"
    _write_file(path, NUNIT_REPORT)
    adapter = NUnitAdapter()

    assert adapter.can_parse(path)
    assert not JUnitAdapter().can_parse(path)
    add, remove, checkout = adapter.parse(path)

    assert add.feature_name == "Shopping cart"
    assert add.scenario_name == "Add one item"
    assert add.status == "passed"
    assert add.tags == ["cart", "smoke"]
    assert add.started_at == datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)
    assert [s.text for s in add.steps] == ["an empty cart", "I add an apple"]
    assert remove.scenario_name == "Remove Item"
    assert remove.status == "pending"
    assert remove.error_message == "Step is pending"
    assert checkout.status == "failed"
    assert checkout.stack_trace == "at Checkout()"


XUNIT_REPORT = """\
<?xml version="1.0" encoding="utf-8"?>
<assemblies>
  <assembly name="Shop.Specs.dll">
    <collection name="Cart">
      <test name="Shop.Specs.ShoppingCartFeature.AddOneItem" type="Shop.Specs.ShoppingCartFeature"
            method="AddOneItem" time="0.2" result="Pass">
        <traits>
          <trait name="FeatureTitle" value="Shopping cart"/>
          <trait name="Description" value="Add one item"/>
          <trait name="Category" value="smoke"/>
          <trait name="Category" value="fast"/>
        </traits>
      </test>
      <test name="Shop.Specs.ShoppingCartFeature.RemoveItem" type="Shop.Specs.ShoppingCartFeature"
            method="RemoveItem" time="0" result="Skip">
        <reason><![CDATA[ignored]]></reason>
      </test>
    </collection>
  </assembly>
</assemblies>
"""


def test_res_007_xunit_maps_traits_and_generated_names(tmp_path: Path) -> None:
    path = tmp_path / "xunit.xml"
    _write_file(path, XUNIT_REPORT)
    adapter = XUnitAdapter()

    assert adapter.can_parse(path)
    add, remove = adapter.parse(path)

    assert add.feature_name == "Shopping cart"
    assert add.scenario_name == "Add one item"
    assert add.status == "passed"
    assert add.tags == ["smoke", "fast"]
    assert remove.feature_name == "Shopping Cart"
    assert remove.scenario_name == "Remove Item"
    assert remove.status == "skipped"
    assert remove.error_message == "ignored"


TRX_REPORT = """\
<?xml version="1.0" encoding="UTF-8"?>
<TestRun id="1" xmlns="http://microsoft.com/schemas/VisualStudio/TeamTest/2010">
  <Results>
    <UnitTestResult testId="t1" testName="AddOneItem" outcome="Passed"
                    duration="00:00:01.5000000" startTime="2026-01-05T10:00:00.000+00:00">
      <Output><StdOut>Given an empty cart
-&gt; done: Steps.Given() (0.0s)
Then the cart holds 1 item
-&gt; error: expected 1
</StdOut></Output>
    </UnitTestResult>
    <UnitTestResult testId="t2" testName="RemoveItem" outcome="NotExecuted" duration="1.00:00:00"/>
    <UnitTestResult testId="t3" testName="Checkout" outcome="Timeout">
      <Output><ErrorInfo><Message>took too long</Message><StackTrace>at X</StackTrace></ErrorInfo></Output>
    </UnitTestResult>
  </Results>
  <TestDefinitions>
    <UnitTest name="AddOneItem" id="t1">
      <TestMethod className="Shop.Specs.ShoppingCartFeature" name="AddOneItem"/>
    </UnitTest>
    <UnitTest name="RemoveItem" id="t2">
      <TestMethod className="Shop.Specs.ShoppingCartFeature" name="RemoveItem"/>
    </UnitTest>
  </TestDefinitions>
</TestRun>
"""


def test_res_008_trx_joins_definitions_and_parses_durations(tmp_path: Path) -> None:
    path = tmp_path / "run.trx"
    _write_file(path, TRX_REPORT)
    adapter = TrxAdapter()

    assert adapter.can_parse(path)
    add, remove, checkout = adapter.parse(path)

    assert add.feature_name == "Shopping Cart"
    assert add.scenario_name == "Add One Item"
    assert add.duration == pytest.approx(1.5)
    assert [s.status for s in add.steps] == ["passed", "failed"]
    assert add.started_at is not None
    assert remove.status == "skipped"
    assert remove.duration == pytest.approx(86400.0)
    assert checkout.status == "failed"
    assert checkout.feature_name is None
    assert checkout.error_message == "took too long"


def test_res_009_trx_rejects_invalid_duration(tmp_path: Path) -> None:
    path = tmp_path / "bad.trx"
    _write_file(
        path,
        '<TestRun xmlns="http://microsoft.com/schemas/VisualStudio/TeamTest/2010">'
        '<Results><UnitTestResult testId="x" testName="A" outcome="Passed" duration="soon"/>'
        "</Results></TestRun>",
    )

    with pytest.raises(ResultParseError, match="invalid duration"):
        TrxAdapter().parse(path)


def test_res_010_trx_requires_team_test_namespace(tmp_path: Path) -> None:
    path = tmp_path / "plain.trx"
    _write_file(path, "<TestRun><Results/></TestRun>")

    assert TrxAdapter().can_parse(path)
    with pytest.raises(ResultParseError, match="unexpected root element"):
        TrxAdapter().parse(path)


NUNIT2_REPORT = """\
<?xml version="1.0" encoding="utf-8"?>
<test-results name="Shop.Specs.dll" total="3" errors="0" failures="1" not-run="1"
              date="2026-01-05" time="10:00:00">
  <environment nunit-version="2.6.4" clr-version="4.0" os-version="Unix" platform="Unix"/>
  <test-suite type="Assembly" name="Shop.Specs.dll" executed="True" result="Failure">
    <results>
      <test-suite type="TestFixture" name="ShoppingCartFeature" description="Shopping cart"
                  executed="True" result="Failure" success="False" time="1.2">
        <categories><category name="cart"/></categories>
        <results>
          <test-case name="Shop.Specs.ShoppingCartFeature.AddOneItem" description="Add one item"
                     executed="True" result="Success" success="True" time="0.5">
            <categories><category name="smoke"/><category name="cart"/></categories>
          </test-case>
          <test-case name="Shop.Specs.ShoppingCartFeature.RemoveItem" executed="False"
                     result="Ignored">
            <reason><message><![CDATA[Ignored scenario]]></message></reason>
          </test-case>
          <test-case name="Shop.Specs.ShoppingCartFeature.Checkout(&quot;a.b&quot;)"
                     executed="True" success="False" time="0.7">
            <failure>
              <message><![CDATA[expected 1 but was 0]]></message>
              <stack-trace><![CDATA[at Checkout()]]></stack-trace>
            </failure>
          </test-case>
        </results>
      </test-suite>
    </results>
  </test-suite>
</test-results>
"""


def test_res_011_nunit2_maps_fixtures_result_and_success(tmp_path: Path) -> None:
    path = tmp_path / "TestResult.xml"
    _write_file(path, NUNIT2_REPORT)
    adapter = NUnit2Adapter()

    assert adapter.can_parse(path)
    assert not NUnitAdapter().can_parse(path)
    add, remove, checkout = adapter.parse(path)

    assert add.feature_name == "Shopping cart"
    assert add.scenario_name == "Add one item"
    assert add.status == "passed"
    assert add.duration == pytest.approx(0.5)
    assert add.tags == ["cart", "smoke"]
    assert remove.scenario_name == "Remove Item"
    assert remove.status == "skipped"
    assert remove.error_message == "Ignored scenario"
    assert checkout.scenario_name == "Checkout"
    assert checkout.status == "failed"
    assert checkout.error_message == "expected 1 but was 0"
    assert checkout.stack_trace == "at Checkout()"

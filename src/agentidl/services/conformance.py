"""ConformanceService: data-driven vectors and scenarios.

A conformance root is laid out as::

    validation-rules/{core,delegation,audit}.json
    vectors/valid-idl/            definitions that must validate
    vectors/invalid-idl/          definitions that must be rejected
    vectors/delegation-contexts/{valid,invalid}/
    vectors/execution-records/{valid,invalid}/
    scenarios/**/scenario.json

Every vector and scenario yields exactly one :class:`CheckResult`. A run
never raises for a bad vector: failures to read or execute are reported
as failing checks.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from agentidl.domain.errors import AgentIdlError
from agentidl.domain.findings import summarize
from agentidl.domain.model import InterfaceModel, build_interface_model
from agentidl.domain.validation import validate_definition, validate_document
from agentidl.infrastructure.documents import collect_files, load_definition, load_object
from agentidl.runtime.agent import AgentRuntime, Message, RuntimeTransport
from agentidl.services.base import BaseService
from agentidl.services.codegen import (
    CodeGenerator,
    Flavor,
    load_generated_module,
    python_identifier,
)
from agentidl.services.result import ServiceError, ServiceResult
from agentidl.services.validation import RuleBook, load_rule_book

if TYPE_CHECKING:
    from agentidl.config.settings import AgentIdlSettings
    from agentidl.infrastructure.documents import DefinitionParser

log = structlog.get_logger(__name__)

SUITES: tuple[str, ...] = (
    "valid-idl",
    "invalid-idl",
    "delegation-contexts",
    "execution-records",
    "scenarios",
)

SCENARIO_FILENAME = "scenario.json"


class CheckResult(BaseModel):
    """Outcome of one vector or scenario."""

    model_config = {"frozen": True}

    name: str
    ok: bool
    error: str | None = None


# ---------------------------------------------------------------------------
# Scenario documents
# ---------------------------------------------------------------------------


class ExpectedOutcome(BaseModel):
    model_config = {"frozen": True}

    status: str


class Scenario(BaseModel):
    """A ``scenario.json`` document. Paths are relative to the file's directory."""

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    name: str
    idl: str | None = None
    method: str | None = None
    payload: Any = None
    delegation_context: str | None = None
    execution_record: str | None = None
    flavor: Flavor = "typed"
    expected: ExpectedOutcome | None = None

    @property
    def check_name(self) -> str:
        return f"scenario:{self.name}"


@dataclass(frozen=True)
class ScenarioContext:
    """Everything a scenario runner may read besides the scenario itself."""

    path: Path
    rules: RuleBook
    caller_id: str
    executor_id: str
    parser: DefinitionParser | None = None

    def resolve(self, relative: str | None, field_name: str) -> Path:
        if not relative:
            msg = f"Scenario is missing {field_name!r}"
            raise AgentIdlError(msg)
        return self.path.parent / relative

    def load_model(self, scenario: Scenario) -> InterfaceModel:
        ast = load_definition(self.resolve(scenario.idl, "idl"), parser=self.parser)
        return build_interface_model(ast)

    def runtimes(self, model: InterfaceModel) -> tuple[AgentRuntime, AgentRuntime]:
        return AgentRuntime(self.caller_id, model), AgentRuntime(self.executor_id, model)


type ScenarioRunner = Callable[[Scenario, ScenarioContext], Awaitable[CheckResult]]

# Populated by the @scenario_runner decorators below.
SCENARIO_REGISTRY: dict[str, ScenarioRunner] = {}


def register_scenario(name: str, runner: ScenarioRunner) -> None:
    """Register *runner* for scenarios named *name*."""
    existing = SCENARIO_REGISTRY.get(name)
    if existing is not None and existing is not runner:
        msg = f"Scenario {name!r} is already registered"
        raise ValueError(msg)
    SCENARIO_REGISTRY[name] = runner


def scenario_runner(*names: str) -> Callable[[ScenarioRunner], ScenarioRunner]:
    def decorate(runner: ScenarioRunner) -> ScenarioRunner:
        for name in names:
            register_scenario(name, runner)
        return runner

    return decorate


def _status_check(scenario: Scenario, result: Any) -> CheckResult:
    expected = scenario.expected.status if scenario.expected else None
    status = result.get("status") if isinstance(result, dict) else None
    if status == expected:
        return CheckResult(name=scenario.check_name, ok=True)
    return CheckResult(
        name=scenario.check_name,
        ok=False,
        error=f"Expected status {expected} but got {status}",
    )


# ---------------------------------------------------------------------------
# Built-in scenarios
# ---------------------------------------------------------------------------


@scenario_runner("basic-delegation", "revocation")
async def _delegated_task(scenario: Scenario, ctx: ScenarioContext) -> CheckResult:
    """Call a delegated operation; the executor refuses revoked contexts."""
    model = ctx.load_model(scenario)
    method = scenario.method or ""
    operation = model.operation(method)
    caller, executor = ctx.runtimes(model)

    if operation is not None:
        names = operation.param_names
        ctx_key = names[0] if names else "ctx"
        request_key = names[1] if len(names) > 1 else "request"

        def perform(message: Message) -> dict[str, Any]:
            delegation = message.payload.get(ctx_key)
            if isinstance(delegation, dict) and delegation.get("revoked") is True:
                return {"status": "revoked", "reason": "Delegation revoked."}
            request = message.payload.get(request_key)
            task = request.get("task") if isinstance(request, dict) else None
            return {"status": "ok", "output": task}

        executor.register_intent(operation.intent, perform)

    delegation = load_object(ctx.resolve(scenario.delegation_context, "delegationContext"))
    result = await caller.call_method(executor, method, delegation, scenario.payload)
    return _status_check(scenario, result)


@scenario_runner("cross-implementation-audit")
async def _audit_record(scenario: Scenario, ctx: ScenarioContext) -> CheckResult:
    """Validate an execution record produced elsewhere against the audit rules."""
    record = load_object(ctx.resolve(scenario.execution_record, "executionRecord"))
    findings = validate_document(record, ctx.rules.audit)
    if findings:
        return CheckResult(name=scenario.check_name, ok=False, error=summarize(findings))
    return CheckResult(name=scenario.check_name, ok=True)


class InteropHandlers:
    """Reference handlers for the AgentTask interface."""

    def proposeContract(self, data: Any, message: Any = None) -> dict[str, Any]:  # noqa: N802
        parties = data.get("parties") if isinstance(data, dict) else None
        return {
            "status": "accepted",
            "contractId": "TEST-1",
            "counterparty": parties[0] if isinstance(parties, list) and parties else None,
        }

    def executePayment(self, payment: Any, message: Any = None) -> dict[str, Any]:  # noqa: N802
        amount = payment.get("amount") if isinstance(payment, dict) else None
        return {"status": "paid", "amount": amount or 0}


@scenario_runner("interop-generated-client")
async def _generated_client(scenario: Scenario, ctx: ScenarioContext) -> CheckResult:
    """Round-trip through a freshly generated client and handler registrar."""
    model = ctx.load_model(scenario)
    caller, executor = ctx.runtimes(model)
    bindings = load_generated_module(CodeGenerator().render(model, scenario.flavor))

    bindings.register_handlers(executor, InteropHandlers())
    client = bindings.create_client(RuntimeTransport(caller, executor))
    stub = getattr(client, python_identifier(scenario.method or ""), None)
    if stub is None:
        return CheckResult(
            name=scenario.check_name,
            ok=False,
            error=f"Generated client has no method {scenario.method!r}",
        )
    result = await stub(scenario.payload)
    return _status_check(scenario, result)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ConformanceService(BaseService):
    """Run a conformance directory and collect one result per check."""

    def __init__(
        self,
        settings: AgentIdlSettings,
        *,
        root: Path | None = None,
        parser: DefinitionParser | None = None,
    ) -> None:
        super().__init__(settings)
        self._root = root or self._path(settings.conformance.root)
        self._parser = parser

    @property
    def root(self) -> Path:
        return self._root

    def rule_book(self) -> RuleBook:
        local = self._root / "validation-rules"
        rules_dir = local if local.is_dir() else self._path(self._settings.validation.rules_dir)
        return load_rule_book(rules_dir, self._settings.validation)

    def _name(self, path: Path) -> str:
        try:
            return path.relative_to(self._root).as_posix()
        except ValueError:
            return path.as_posix()

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------

    def _definition_files(self, directory: Path) -> list[Path]:
        files = collect_files(directory, ".json")
        if self._parser is not None:
            files = sorted([*files, *collect_files(directory, ".idl")])
        return files

    def run_definition_vectors(
        self, directory: Path, *, expect_valid: bool, rules: RuleBook, profile: str
    ) -> list[CheckResult]:
        results: list[CheckResult] = []
        for path in self._definition_files(directory):
            name = self._name(path)
            try:
                ast = load_definition(path, parser=self._parser)
                findings = validate_definition(ast, rules.core, profile=profile)
            except AgentIdlError as exc:
                # Unloadable definitions count as rejected.
                results.append(
                    CheckResult(name=name, ok=False, error=str(exc))
                    if expect_valid
                    else CheckResult(name=name, ok=True)
                )
                continue
            results.append(self._verdict(name, findings, expect_valid, "IDL"))
            log.debug("vector.checked", vector=name, findings=len(findings))
        return results

    def run_document_vectors(
        self, directory: Path, kind: str, *, expect_valid: bool, rules: RuleBook
    ) -> list[CheckResult]:
        document_rules = rules.for_kind(kind)
        noun = kind.replace("-", " ")
        results: list[CheckResult] = []
        for path in collect_files(directory, ".json"):
            name = self._name(path)
            try:
                findings = validate_document(load_object(path), document_rules)
            except AgentIdlError as exc:
                results.append(CheckResult(name=name, ok=False, error=str(exc)))
                continue
            results.append(self._verdict(name, findings, expect_valid, noun))
            log.debug("vector.checked", vector=name, findings=len(findings))
        return results

    @staticmethod
    def _verdict(name: str, findings: list[Any], expect_valid: bool, noun: str) -> CheckResult:
        if findings and expect_valid:
            return CheckResult(name=name, ok=False, error=summarize(findings))
        if not findings and not expect_valid:
            return CheckResult(
                name=name, ok=False, error=f"Expected invalid {noun} but validation passed."
            )
        return CheckResult(name=name, ok=True)

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    async def run_scenario(self, path: Path, *, rules: RuleBook | None = None) -> CheckResult:
        """Execute one scenario file. Never raises for scenario-level problems."""
        try:
            scenario = Scenario.model_validate(load_object(path))
        except (AgentIdlError, ValidationError) as exc:
            return CheckResult(name=f"scenario:{self._name(path)}", ok=False, error=str(exc))

        runner = SCENARIO_REGISTRY.get(scenario.name)
        if runner is None:
            return CheckResult(name=scenario.check_name, ok=False, error="Unknown scenario.")

        cfg = self._settings.conformance
        context = ScenarioContext(
            path=path,
            rules=rules or self.rule_book(),
            caller_id=cfg.caller_id,
            executor_id=cfg.executor_id,
            parser=self._parser,
        )
        try:
            result = await runner(scenario, context)
        except AgentIdlError as exc:
            result = CheckResult(name=scenario.check_name, ok=False, error=str(exc))
        except Exception as exc:
            # Generated bindings and handlers may raise anything.
            log.warning("scenario.crashed", scenario=scenario.name, error=repr(exc))
            result = CheckResult(
                name=scenario.check_name, ok=False, error=f"{type(exc).__name__}: {exc}"
            )
        log.debug("vector.checked", vector=result.name, ok=result.ok)
        return result

    async def _run_scenarios(self, paths: list[Path], rules: RuleBook) -> list[CheckResult]:
        return [await self.run_scenario(path, rules=rules) for path in paths]

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(
        self,
        *,
        suite: str | None = None,
        scenario: Path | None = None,
        profile: str | None = None,
    ) -> ServiceResult:
        """Run one scenario, one suite, or everything under the root."""
        op = "conformance"
        if suite is not None and suite not in SUITES:
            return ServiceResult.failure(
                op, "UNKNOWN_SUITE", f"Unknown suite: {suite}", choices=list(SUITES)
            )

        try:
            rules = self.rule_book()
        except AgentIdlError as exc:
            return ServiceResult.failure(op, "MALFORMED_DOCUMENT", str(exc))

        if scenario is not None:
            target = scenario if scenario.is_absolute() else self._root / scenario
            return self._summary(op, [asyncio.run(self.run_scenario(target, rules=rules))])

        vectors = self._root / "vectors"
        selected = set(SUITES) if suite is None else {suite}
        active_profile = profile or self._settings.validation.profile
        results: list[CheckResult] = []

        if "valid-idl" in selected:
            results += self.run_definition_vectors(
                vectors / "valid-idl", expect_valid=True, rules=rules, profile=active_profile
            )
        if "invalid-idl" in selected:
            results += self.run_definition_vectors(
                vectors / "invalid-idl", expect_valid=False, rules=rules, profile=active_profile
            )
        for suite_name, kind in (
            ("delegation-contexts", "delegation-context"),
            ("execution-records", "execution-record"),
        ):
            if suite_name in selected:
                base = vectors / suite_name
                results += self.run_document_vectors(
                    base / "valid", kind, expect_valid=True, rules=rules
                )
                results += self.run_document_vectors(
                    base / "invalid", kind, expect_valid=False, rules=rules
                )
        if "scenarios" in selected:
            paths = [
                p
                for p in collect_files(self._root / "scenarios", ".json")
                if p.name == SCENARIO_FILENAME
            ]
            results += asyncio.run(self._run_scenarios(paths, rules))

        return self._summary(op, results)

    @staticmethod
    def _summary(op: str, results: list[CheckResult]) -> ServiceResult:
        failed = sum(1 for r in results if not r.ok)
        data: dict[str, Any] = {
            "results": [r.model_dump() for r in results],
            "total": len(results),
            "passed": len(results) - failed,
            "failed": failed,
        }
        if not failed:
            return ServiceResult(ok=True, op=op, data=data)
        return ServiceResult(
            ok=False,
            op=op,
            data=data,
            error=ServiceError(
                code="CHECKS_FAILED", message=f"{failed} of {len(results)} checks failed"
            ),
        )

"""Code generation: client and handler modules from an InterfaceModel.

Everything emitted here is derived from the model alone. The intents
registry is built once per model and shared by the client contract, the
handler contract, and both rendered flavors, so client and registrar
always agree on the intent string for every operation.
"""

from __future__ import annotations

import importlib.abc
import importlib.util
import keyword
import re
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any, Literal

import structlog

from agentidl import __version__
from agentidl.domain.errors import MalformedDocument, NoInterfaceDefinition
from agentidl.domain.model import build_interface_model
from agentidl.domain.typedesc import (
    PROMISE_KIND,
    PYTHON_DIALECT,
    WRAPPER_MARKERS,
    Generic,
    TypeDescriptor,
    ordered_referenced_types,
    resolve,
    unwrap_promise,
)
from agentidl.infrastructure.documents import load_definition
from agentidl.infrastructure.templates import build_template_environment
from agentidl.services.base import BaseService
from agentidl.services.result import ServiceResult

if TYPE_CHECKING:
    from importlib.machinery import ModuleSpec

    from jinja2 import Environment

    from agentidl.domain.model import InterfaceModel, OperationModel
    from agentidl.infrastructure.documents import DefinitionParser

log = structlog.get_logger(__name__)

Flavor = Literal["typed", "untyped"]
FLAVORS: tuple[Flavor, ...] = ("typed", "untyped")

# Names a generated stub body already binds; parameters must not shadow them.
RESERVED_PARAM_NAMES: frozenset[str] = frozenset({"self", "message", "intents"})

_NON_IDENTIFIER = re.compile(r"\W")


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IntentBinding:
    """Routing metadata for one operation."""

    intent: str
    proof: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"intent": self.intent, "proof": self.proof}


@dataclass(frozen=True)
class ParamSpec:
    """A parameter as it appears in generated code."""

    name: str  # payload key, verbatim from the definition
    identifier: str  # Python-safe argument name
    annotation: str


@dataclass(frozen=True)
class StubSpec:
    """One operation as seen by the client stub and the handler contract."""

    name: str  # registry key, verbatim from the definition
    identifier: str  # Python-safe method name
    params: tuple[ParamSpec, ...]
    client_return: str
    handler_return: str


@dataclass(frozen=True)
class ClientContract:
    """Everything the client half needs: intents and stub signatures."""

    interface: str
    intents: dict[str, IntentBinding]
    stubs: tuple[StubSpec, ...]


@dataclass(frozen=True)
class HandlerContract:
    """Everything the registrar half needs: intents and handler signatures."""

    interface: str
    intents: dict[str, IntentBinding]
    entries: tuple[StubSpec, ...]


@dataclass(frozen=True)
class GeneratedModule:
    """A rendered module plus the registry it embeds."""

    flavor: Flavor
    module_name: str
    source: str
    intents: dict[str, IntentBinding]
    custom_types: tuple[str, ...] = ()

    @property
    def filename(self) -> str:
        return f"{self.module_name}.py"


# ---------------------------------------------------------------------------
# Model projections
# ---------------------------------------------------------------------------


def python_identifier(name: str) -> str:
    """Make *name* usable as a Python argument or method name."""
    name = _NON_IDENTIFIER.sub("_", name)
    if not name or name[0].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name):
        return f"{name}_"
    return name


def build_intents_registry(model: InterfaceModel) -> dict[str, IntentBinding]:
    """Operation name → intent binding, in declaration order."""
    return {
        name: IntentBinding(intent=op.intent, proof=op.proof or None)
        for name, op in model.operations.items()
    }


def custom_type_names(model: InterfaceModel) -> list[str]:
    """Nominal types referenced by any operation that need placeholder declarations."""
    descriptors: list[TypeDescriptor] = []
    for op in model.operations.values():
        descriptors.extend(param.descriptor for param in op.params)
        descriptors.append(op.return_descriptor)
    excluded = {model.name, *WRAPPER_MARKERS}
    return [
        name
        for name in ordered_referenced_types(descriptors)
        if name not in excluded and name.isidentifier() and not keyword.iskeyword(name)
    ]


def _param_identifiers(names: list[str]) -> list[str]:
    taken = set(RESERVED_PARAM_NAMES)
    identifiers: list[str] = []
    for name in names:
        identifier = python_identifier(name)
        while identifier in taken:
            identifier = f"{identifier}_"
        taken.add(identifier)
        identifiers.append(identifier)
    return identifiers


def _stub(op: OperationModel) -> StubSpec:
    params = tuple(
        ParamSpec(
            name=param.name,
            identifier=identifier,
            annotation=resolve(param.descriptor, PYTHON_DIALECT),
        )
        for param, identifier in zip(op.params, _param_identifiers(op.param_names), strict=True)
    )
    returned = op.return_descriptor
    if isinstance(returned, Generic) and returned.kind == PROMISE_KIND:
        client_return = resolve(returned, PYTHON_DIALECT)
    else:
        # The transport is always asynchronous, whatever the declared type.
        client_return = PYTHON_DIALECT.wrap(PROMISE_KIND, resolve(returned, PYTHON_DIALECT))
    return StubSpec(
        name=op.name,
        identifier=python_identifier(op.name),
        params=params,
        client_return=client_return,
        handler_return=resolve(unwrap_promise(returned), PYTHON_DIALECT),
    )


def generate_client(model: InterfaceModel) -> ClientContract:
    return ClientContract(
        interface=model.name,
        intents=build_intents_registry(model),
        stubs=tuple(_stub(op) for op in model.operations.values()),
    )


def generate_handlers(model: InterfaceModel) -> HandlerContract:
    return HandlerContract(
        interface=model.name,
        intents=build_intents_registry(model),
        entries=tuple(_stub(op) for op in model.operations.values()),
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class CodeGenerator:
    """Render typed and untyped binding modules through Jinja2 templates."""

    def __init__(
        self,
        env: Environment | None = None,
        *,
        untyped_suffix: str = "_untyped",
    ) -> None:
        self._env = env or build_template_environment("codegen")
        self._untyped_suffix = untyped_suffix

    def module_name(self, model: InterfaceModel, flavor: Flavor) -> str:
        base = model.name.lower()
        return base if flavor == "typed" else f"{base}{self._untyped_suffix}"

    def render(self, model: InterfaceModel, flavor: Flavor = "typed") -> GeneratedModule:
        client = generate_client(model)
        custom_types = custom_type_names(model) if flavor == "typed" else []
        template = self._env.get_template(f"{flavor}.py.j2")
        source = template.render(
            version=__version__,
            interface=model.name,
            intents=client.intents,
            stubs=client.stubs,
            custom_types=custom_types,
        )
        module = GeneratedModule(
            flavor=flavor,
            module_name=self.module_name(model, flavor),
            source=source,
            intents=client.intents,
            custom_types=tuple(custom_types),
        )
        log.debug(
            "codegen.rendered",
            interface=model.name,
            flavor=flavor,
            operations=len(client.stubs),
            custom_types=len(custom_types),
        )
        return module


class GeneratedModuleLoader(importlib.abc.Loader):
    """Import-system loader that executes a rendered module from memory."""

    def __init__(self, module: GeneratedModule) -> None:
        self._module = module

    def create_module(self, spec: ModuleSpec) -> ModuleType | None:
        return None

    def exec_module(self, module: ModuleType) -> None:
        code = compile(self._module.source, f"<agentidl:{self._module.filename}>", "exec")
        exec(code, module.__dict__)  # noqa: S102


def load_generated_module(module: GeneratedModule) -> ModuleType:
    """Import a rendered module and return it as a module object.

    The module is not registered in ``sys.modules``.

    Raises:
        ImportError: no module spec could be built for *module*.
    """
    spec = importlib.util.spec_from_loader(module.module_name, GeneratedModuleLoader(module))
    if spec is None or spec.loader is None:
        msg = f"Cannot build a module spec for {module.module_name}"
        raise ImportError(msg)
    loaded = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(loaded)
    return loaded


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class GenerateService(BaseService):
    """Compile a definition into binding modules and ontology documents."""

    def generate_file(
        self,
        definition: Path,
        *,
        out_dir: Path | None = None,
        flavors: tuple[Flavor, ...] | None = None,
        with_ontology: bool = True,
        parser: DefinitionParser | None = None,
    ) -> ServiceResult:
        """Load *definition*, build its model, and generate every artifact."""
        try:
            model = build_interface_model(load_definition(definition, parser=parser))
        except MalformedDocument as exc:
            return ServiceResult.failure(
                "generate", "MALFORMED_DOCUMENT", str(exc), path=str(definition)
            )
        except NoInterfaceDefinition as exc:
            return ServiceResult.failure("generate", "NO_INTERFACE", str(exc), path=str(definition))
        log.info("model.built", interface=model.name, operations=len(model.operations))
        return self.generate(model, out_dir=out_dir, flavors=flavors, with_ontology=with_ontology)

    def generate(
        self,
        model: InterfaceModel,
        *,
        out_dir: Path | None = None,
        flavors: tuple[Flavor, ...] | None = None,
        with_ontology: bool = True,
    ) -> ServiceResult:
        """Write every artifact for *model* and report what was written."""
        from agentidl.services.ontology import OntologyProjector

        codegen_cfg = self._settings.codegen
        target = out_dir or self._path(codegen_cfg.out_dir)
        target.mkdir(parents=True, exist_ok=True)
        generator = CodeGenerator(untyped_suffix=codegen_cfg.untyped_suffix)

        files: list[str] = []
        custom_types: list[str] = []
        for flavor in flavors or codegen_cfg.flavors:
            module = generator.render(model, flavor)
            path = target / module.filename
            path.write_text(module.source, encoding="utf-8")
            files.append(str(path))
            if flavor == "typed":
                custom_types = list(module.custom_types)

        if with_ontology:
            projector = OntologyProjector.from_config(self._settings.ontology)
            ontology_dir = (
                target / "ontology" if out_dir is not None else self._path(codegen_cfg.ontology_dir)
            )
            files.extend(str(p) for p in projector.write(model, ontology_dir))

        data: dict[str, Any] = {
            "interface": model.name,
            "operations": len(model.operations),
            "intents": {name: b.to_dict() for name, b in build_intents_registry(model).items()},
            "custom_types": custom_types,
            "files": files,
        }
        return ServiceResult(ok=True, op="generate", data=data)

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
import re
from typing import Any, Sequence

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import best_match
from jsonschema.validators import extend

from nftdeploy.errors import ArtifactException, ConstructorArgumentsException

logger = logging.getLogger(__name__)

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

_UINT_RE = re.compile(r"^uint(\d*)$")
_INT_RE = re.compile(r"^int(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")


def _is_solidity_integer(checker, instance: Any) -> bool:
    # JSON Schema treats 20.0 as an integer; forge would receive "20.0"
    return isinstance(instance, int) and not isinstance(instance, bool)


ConstructorArgsValidator = extend(
    Draft202012Validator,
    type_checker=Draft202012Validator.TYPE_CHECKER.redefine("integer", _is_solidity_integer),
)


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str | None = None


def find_artifact(contract_name: str, artifacts_dir: Path) -> Path | None:
    """Locate a compiled artifact in Foundry (``out/X.sol/X.json``) or Truffle (``X.json``) layout."""
    candidates = (
        artifacts_dir / f"{contract_name}.sol" / f"{contract_name}.json",
        artifacts_dir / f"{contract_name}.json",
    )
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _extract_bytecode(payload: dict[str, Any]) -> str | None:
    bytecode = payload.get("bytecode")
    # Foundry nests the hex under "object", Truffle stores it directly
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    return bytecode if isinstance(bytecode, str) else None


def load_artifact(contract_name: str, path: Path) -> ContractArtifact:
    try:
        payload = json.loads(path.read_text())
    except OSError as exc:
        raise ArtifactException(f"Unable to read artifact {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ArtifactException(f"Invalid JSON in artifact {path}: {exc.msg}") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("abi"), list):
        raise ArtifactException(f"Artifact {path} has no abi list")
    return ContractArtifact(name=contract_name, abi=payload["abi"], bytecode=_extract_bytecode(payload))


def constructor_inputs(abi: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    for entry in abi:
        if isinstance(entry, dict) and entry.get("type") == "constructor":
            return list(entry.get("inputs") or [])
    return []


def _int_bits(size: str) -> int:
    return int(size) if size else 256


def _schema_for_abi_type(abi_type: str) -> dict[str, Any]:
    if match := _UINT_RE.match(abi_type):
        return {"type": "integer", "minimum": 0, "maximum": 2 ** _int_bits(match.group(1)) - 1}
    if match := _INT_RE.match(abi_type):
        bits = _int_bits(match.group(1))
        return {"type": "integer", "minimum": -(2 ** (bits - 1)), "maximum": 2 ** (bits - 1) - 1}
    if abi_type == "bool":
        return {"type": "boolean"}
    if abi_type == "string":
        return {"type": "string"}
    if abi_type == "address":
        return {"type": "string", "pattern": "^0x[0-9a-fA-F]{40}$"}
    if match := _BYTES_RE.match(abi_type):
        return {"type": "string", "pattern": f"^0x[0-9a-fA-F]{{{2 * int(match.group(1))}}}$"}
    # arrays, tuples and dynamic bytes are left to the provisioning tool
    return {}


def constructor_schema(inputs: Sequence[dict[str, Any]]) -> dict[str, Any]:
    """Build a JSON Schema describing the positional constructor arguments."""
    items = []
    for index, item in enumerate(inputs):
        schema = _schema_for_abi_type(str(item.get("type", "")))
        schema["title"] = item.get("name") or f"arg{index}"
        items.append(schema)
    return {
        "$schema": JSON_SCHEMA_DIALECT,
        "type": "array",
        "prefixItems": items,
        "items": False,
        "minItems": len(items),
        "maxItems": len(items),
    }


def validate_constructor_args(artifact: ContractArtifact, args: Sequence[Any]) -> None:
    schema = constructor_schema(constructor_inputs(artifact.abi))
    error: ValidationError | None = best_match(ConstructorArgsValidator(schema).iter_errors(list(args)))
    if error is not None:
        raise ConstructorArgumentsException(
            f"Constructor arguments for {artifact.name} are invalid: {error.message}"
        )
    logger.debug("Constructor arguments for %s match the artifact ABI", artifact.name)

"""
BOM document parsing and upload checks

A BOM document is a YAML file shaped like::

    kind: BillOfMaterial
    metadata:
      name: fin-services        # becomes the architecture id
    spec:
      variables: [...]          # optional, global automation variables
      modules:
        - name: terraform-vpc   # module catalog automation id
          alias: vpc1
          variables: {region: us-south}
          dependencies: [...]
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import yaml

from app.core.errors import BomValidationError

BOM_KIND = "BillOfMaterial"


@dataclass
class UploadedFile:
    """Upload normalised away from the HTTP transport"""
    mimetype: str
    buffer: bytes
    size: int
    filename: Optional[str] = None


@dataclass
class BomModule:
    """One entry of `spec.modules`"""
    name: str
    alias: Optional[str] = None
    variables: Any = None
    dependencies: Optional[List[Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def description(self) -> str:
        return self.alias or self.name

    def automation_config(self) -> Dict[str, Any]:
        """Present subset of alias/variables/dependencies, in that order"""
        config: Dict[str, Any] = {}
        if self.alias:
            config["alias"] = self.alias
        if self.variables:
            config["variables"] = self.variables
        if self.dependencies:
            config["dependencies"] = self.dependencies
        return config


@dataclass
class BomDocument:
    name: str
    modules: List[BomModule]
    variables: Any = None
    raw: Dict[str, Any] = field(default_factory=dict)


def check_uploads(
    files: Iterable[UploadedFile],
    allowed_mimetypes: Iterable[str],
    max_bytes: int,
) -> List[UploadedFile]:
    """Reject the whole batch if any file has a non-YAML type or is too large.

    Runs before any file is parsed.
    """
    allowed = set(allowed_mimetypes)
    checked = list(files)
    if not checked:
        raise BomValidationError("No BOM file uploaded.")
    for upload in checked:
        if upload.mimetype not in allowed:
            raise BomValidationError(
                "You must only upload YAML files.",
                details={"filename": upload.filename, "mimetype": upload.mimetype},
            )
        if upload.size > max_bytes:
            raise BomValidationError(
                f"Files must be <= {max_bytes // 1024}KB.",
                details={"filename": upload.filename, "size": upload.size},
            )
    return checked


def _parse_module(index: int, entry: Any) -> BomModule:
    if not isinstance(entry, dict):
        raise BomValidationError(f"YAML property 'spec.modules[{index}]' must be a mapping.")

    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise BomValidationError(f"YAML property 'spec.modules[{index}].name' must be set.")

    alias = entry.get("alias")
    if alias is not None and not isinstance(alias, str):
        raise BomValidationError(f"YAML property 'spec.modules[{index}].alias' must be a string.")

    variables = entry.get("variables")
    if variables is not None and not isinstance(variables, (dict, list)):
        raise BomValidationError(
            f"YAML property 'spec.modules[{index}].variables' must be a mapping or a list."
        )

    dependencies = entry.get("dependencies")
    if dependencies is not None and not isinstance(dependencies, list):
        raise BomValidationError(f"YAML property 'spec.modules[{index}].dependencies' must be a list.")

    return BomModule(
        name=name.strip(),
        alias=alias,
        variables=variables,
        dependencies=dependencies,
        raw=entry,
    )


def parse_bom(raw_text: str) -> BomDocument:
    """Parse a BOM YAML document and enforce its required shape"""
    try:
        doc = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise BomValidationError("Invalid YAML document.", details=str(e)) from e

    if not isinstance(doc, dict):
        raise BomValidationError("YAML document must be a mapping.")

    if doc.get("kind") != BOM_KIND:
        raise BomValidationError(f"YAML property 'kind' must be set to '{BOM_KIND}'.")

    metadata = doc.get("metadata")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    if not isinstance(name, str) or not name.strip():
        raise BomValidationError("YAML property 'metadata.name' must be set.")

    spec = doc.get("spec")
    modules = spec.get("modules") if isinstance(spec, dict) else None
    if not isinstance(modules, list) or not modules:
        raise BomValidationError(
            "YAML property 'spec.modules' must be a list of valid terraform modules."
        )

    return BomDocument(
        name=name.strip(),
        modules=[_parse_module(i, entry) for i, entry in enumerate(modules)],
        variables=spec.get("variables"),
        raw=doc,
    )


def decode_upload(upload: UploadedFile) -> str:
    try:
        return upload.buffer.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BomValidationError("BOM file must be UTF-8 encoded.", details=str(e)) from e


def dump_yaml(data: Any) -> str:
    """Serialise to YAML keeping key insertion order"""
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)

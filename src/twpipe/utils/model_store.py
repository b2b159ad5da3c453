"""
Persistent Model Store

A namespaced, human-inspectable JSON document holding every stage of a
trained pipeline. Each stage namespace keeps its text fields in insertion
order and, once training is done, an opaque base64 parameter blob.
"""

import base64
import binascii
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from transformers.utils import logging

from ..errors import CorruptModelArtifact

logger = logging.get_logger(__name__)

FORMAT_VERSION = 1


class ModelStoreError(RuntimeError):
    """Raised on an illegal write to the store."""


class FieldNotFound(KeyError):
    """Raised when a stage or field is not present in the store."""

    def __init__(self, stage: str, field: str):
        self.stage = stage
        self.field = field
        super().__init__(f"{stage}/{field}")


class ModelStore:
    """
    Mapping from (stage, field) to text value, plus one parameter blob per stage.

    A store is either created fresh for training (writable) or opened with
    :meth:`load` for inference (read-only).
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize an empty, writable store.

        Args:
            path: Default destination used by :meth:`flush`
        """
        self.path = Path(path) if path is not None else None
        self.read_only = False
        self._stages: Dict[str, Dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # writes

    def _namespace(self, stage: str) -> Dict[str, Any]:
        if self.read_only:
            raise ModelStoreError(f"model store {self.path} was opened read-only")
        return self._stages.setdefault(stage, {"fields": {}, "parameters": None})

    def put(self, stage: str, field: str, value: str) -> None:
        """
        Append a field to a stage namespace.

        Raises:
            TypeError: If value is not a string
            ModelStoreError: If the store is read-only or the field is already written
        """
        if not isinstance(value, str):
            raise TypeError(f"model store values must be str, got {type(value).__name__} for {stage}/{field}")
        fields = self._namespace(stage)["fields"]
        if field in fields:
            raise ModelStoreError(f"field '{field}' already written for stage '{stage}'")
        fields[field] = value

    def put_many(self, stage: str, items: Iterable[Tuple[str, str]]) -> None:
        """Append several fields to a stage namespace, in the given order."""
        for field, value in items:
            self.put(stage, field, value)

    def put_parameters(self, stage: str, blob: bytes) -> None:
        """Attach the trained-parameter blob of a stage."""
        namespace = self._namespace(stage)
        if namespace["parameters"] is not None:
            raise ModelStoreError(f"parameters already written for stage '{stage}'")
        namespace["parameters"] = base64.b64encode(blob).decode("ascii")
        logger.info(f"Stored {len(blob)} bytes of parameters for stage '{stage}'")

    # ------------------------------------------------------------------
    # reads

    def has_stage(self, stage: str) -> bool:
        return stage in self._stages

    def stages(self) -> List[str]:
        return list(self._stages.keys())

    def get(self, stage: str, field: str) -> str:
        """
        Read one field.

        Raises:
            FieldNotFound: If the stage or field is missing
        """
        try:
            return self._stages[stage]["fields"][field]
        except KeyError:
            raise FieldNotFound(stage, field) from None

    def fields(self, stage: str) -> List[Tuple[str, str]]:
        """Return the fields of a stage in the order they were written."""
        if stage not in self._stages:
            raise FieldNotFound(stage, "*")
        return list(self._stages[stage]["fields"].items())

    def get_parameters(self, stage: str) -> bytes:
        """
        Read the parameter blob of a stage.

        Raises:
            FieldNotFound: If the stage has no parameters
            CorruptModelArtifact: If the blob is not valid base64
        """
        encoded = self._stages.get(stage, {}).get("parameters")
        if encoded is None:
            raise FieldNotFound(stage, "parameters")
        try:
            return base64.b64decode(encoded.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError, AttributeError) as e:
            raise CorruptModelArtifact(f"undecodable parameter blob: {e}", stage=stage,
                                       field="parameters") from e

    # ------------------------------------------------------------------
    # durability

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": FORMAT_VERSION,
            "stages": {
                stage: {"fields": dict(data["fields"]), "parameters": data["parameters"]}
                for stage, data in self._stages.items()
            },
        }

    def flush(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write the store to disk atomically.

        Args:
            path: Destination; defaults to the path given at construction

        Returns:
            Path written

        Raises:
            ValueError: If no destination is known
            OSError: If the destination cannot be written
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No destination path given for model store")
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        self.path = target
        logger.info(f"Model store written to {target} (stages: {self.stages()})")
        return target

    @classmethod
    def from_dict(cls, document: Dict[str, Any], path: Optional[Union[str, Path]] = None) -> "ModelStore":
        """
        Build a read-only store from a decoded document.

        Raises:
            CorruptModelArtifact: If the document does not have the expected layout
        """
        if not isinstance(document, dict) or document.get("format") != FORMAT_VERSION:
            raise CorruptModelArtifact("unsupported model store document",
                                       expected=FORMAT_VERSION,
                                       actual=document.get("format") if isinstance(document, dict) else None)
        stages = document.get("stages")
        if not isinstance(stages, dict):
            raise CorruptModelArtifact("model store document has no stages")

        store = cls(path)
        for stage, data in stages.items():
            if not isinstance(data, dict) or not isinstance(data.get("fields"), dict):
                raise CorruptModelArtifact("malformed stage namespace", stage=stage)
            for field, value in data["fields"].items():
                if not isinstance(value, str):
                    raise CorruptModelArtifact("non-text field value", stage=stage, field=field, actual=value)
            parameters = data.get("parameters")
            if parameters is not None and not isinstance(parameters, str):
                raise CorruptModelArtifact("malformed parameter blob", stage=stage, field="parameters")
            store._stages[stage] = {"fields": dict(data["fields"]), "parameters": parameters}
        store.read_only = True
        return store

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ModelStore":
        """
        Read every stage of a model artifact into memory.

        Raises:
            FileNotFoundError: If the artifact does not exist
            CorruptModelArtifact: If the artifact is not a valid model store
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Model artifact not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptModelArtifact(f"model artifact {path} is not valid UTF-8 JSON: {e}") from e
        store = cls.from_dict(document, path)
        logger.info(f"Loaded model store {path} (stages: {store.stages()})")
        return store

    def __contains__(self, stage: str) -> bool:
        return stage in self._stages

    def __repr__(self) -> str:
        mode = "read-only" if self.read_only else "writable"
        return f"{self.__class__.__name__}({self.path}, {mode}, stages={self.stages()})"

"""Turn raw tracker payloads into a :class:`Release` using a mapping definition."""

from __future__ import annotations

import os
from typing import Any, Callable, Mapping

import jinja2

from ..config import Settings
from ..errors import MalformedChangeError, ReleaseDraftError, TransformError
from ..logging_config import get_logger
from ..model import Change, Release
from ..model.change import TEXT_FIELDS, unwrap_single
from ..query import QueryResolver
from ..sandbox import DEFAULT_TIMEOUT, SafeEvaluator
from ..schema.tags import TaggedValue, detag
from ..schema.utils import default_for
from ..templating import TemplatedField, compile_template, render_template
from ..templating.engines import canonical_engine
from ..transforms.pasterize import pasterize
from .loader import mapping_schema
from .notes import extract_headline, extract_note, flatten_rich_note
from .tags import TagPolicy, extract_raw_tags

LOGGER = get_logger(__name__)

SKIP_KEYS = frozenset({"$meta", "$config", "changes_array_path"})
NOTE_SOURCES_WITH_PATTERN = frozenset({"issue_body"})

# field name -> (settings switch, transform)
FIELD_POSTPROCESSORS: Mapping[str, tuple[str, Callable[[Any], Any]]] = {
    "summary": ("changes.pasterize_summary", pasterize),
    "headline": ("changes.pasterize_headline", pasterize),
}


def _is_template_text(value: Any) -> bool:
    if isinstance(value, TaggedValue):
        return True
    return isinstance(value, str) and ("{{" in value or "{%" in value)


class MappingAdapter:
    """Apply a mapping definition to raw records, one item at a time.

    Languages, engines and templates are checked when the adapter is built,
    so a broken mapping fails before any record is touched. Failures while
    handling a single record drop that record and are logged.
    """

    def __init__(
        self,
        mapping: Mapping[str, Any],
        settings: Settings | Mapping[str, Any],
        *,
        resolver: QueryResolver | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.mapping = mapping
        self.settings = settings if isinstance(settings, Settings) else Settings(settings)
        self.resolver = resolver or QueryResolver()
        self.timeout = timeout

        schema = mapping_schema()
        mapping_config = mapping.get("$config") or {}
        self.path_lang = str(
            detag(mapping_config.get("path_lang")) or default_for(schema, "$config.path_lang") or "jmespath"
        ).lower()
        self.tplt_lang = canonical_engine(
            detag(mapping_config.get("tplt_lang")) or default_for(schema, "$config.tplt_lang")
        )
        self.resolver.backend(self.path_lang)

        self.fields: dict[str, Mapping[str, Any]] = {}
        self._templates: dict[tuple[str, str], tuple[jinja2.Template, str]] = {}
        for key, definition in mapping.items():
            if key in SKIP_KEYS or str(key).startswith("_") or definition is None:
                continue
            if not isinstance(definition, Mapping):
                definition = {"path": definition}
            self._prepare_field(str(key), definition)

        self.tag_policy = TagPolicy.from_config(
            self.settings.get("tags"),
            empty_notes=self.settings.get("changes.empty_notes"),
            placeholder=self.settings.get("changes.empty_notes_content"),
        )
        self._chid = self._prepare_chid(self.settings.get("changes.chid"))

    def _prepare_field(self, key: str, definition: Mapping[str, Any]) -> None:
        field_lang = definition.get("path_lang")
        if field_lang:
            self.resolver.backend(str(detag(field_lang)))
        if definition.get("code") and definition.get("tplt"):
            LOGGER.warning("Field defines both code and tplt; using code", extra={"field": key})
        path = definition.get("path")
        if _is_template_text(path):
            self._templates[(key, "path")] = self._compile(path, f"{key}.path")
        if definition.get("tplt") is not None and not definition.get("code"):
            self._templates[(key, "tplt")] = self._compile(definition["tplt"], f"{key}.tplt")
        self.fields[key] = definition

    def _compile(self, source: Any, where: str) -> tuple[jinja2.Template, str]:
        if isinstance(source, TaggedValue):
            engine = canonical_engine(source.tag)
            text = source.value
        else:
            engine = self.tplt_lang
            text = str(source)
        return compile_template(text, engine, path=f"mapping:{where}"), engine

    def _prepare_chid(self, chid: Any) -> TemplatedField | None:
        if isinstance(chid, TemplatedField):
            return chid
        if not isinstance(chid, str) or not chid.strip():
            return None
        compiled, engine = self._compile(chid, "changes.chid")
        return TemplatedField(raw=chid, compiled=compiled, engine=engine, tagged=False)

    # Field mapping

    def _path_context(self) -> dict[str, Any]:
        return {"config": self.settings, "env": dict(os.environ)}

    def _render(self, key: str, kind: str, context: Mapping[str, Any]) -> str:
        compiled, engine = self._templates[(key, kind)]
        return render_template(compiled, engine, context)

    def extract(self, node: Any, expression: Any, language: str | None = None) -> Any:
        return self.resolver.extract(node, expression, language or self.path_lang)

    def _apply_code(self, key: str, code: str, value: Any) -> Any:
        evaluator = SafeEvaluator({"path": value, "config": self.settings}, timeout=self.timeout)
        try:
            return evaluator.evaluate(code)
        except TransformError as exc:
            LOGGER.error(
                "Transform failed; keeping extracted value",
                extra={"field": key, "state": evaluator.state.value, "error": str(exc)},
            )
            return value

    def _postprocess_field(self, key: str, value: Any) -> Any:
        hook = FIELD_POSTPROCESSORS.get(key)
        if hook is None:
            return value
        switch, transform = hook
        return transform(value) if self.settings.get(switch) else value

    def map_single_change(self, raw: Any, release: Release | None = None) -> dict[str, Any]:
        """Return the mapped fields of ``raw`` plus ``change_id`` and ``raw``."""

        if not isinstance(raw, Mapping):
            raise MalformedChangeError("Raw record must be a mapping", context={"type": type(raw).__name__})

        result: dict[str, Any] = {}
        for key, definition in self.fields.items():
            path = definition.get("path")
            if (key, "path") in self._templates:
                path = self._render(key, "path", self._path_context())
            language = detag(definition.get("path_lang"))
            value = self.extract(raw, detag(path), language)

            code = detag(definition.get("code"))
            if code:
                value = self._apply_code(key, str(code), value)
            elif (key, "tplt") in self._templates:
                value = self._render(key, "tplt", {"path": value})

            if key in TEXT_FIELDS:
                value = unwrap_single(value)
            result[key] = self._postprocess_field(key, value)

        self._assign_change_id(result, release)
        result["raw"] = raw
        return result

    def _assign_change_id(self, result: dict[str, Any], release: Release | None) -> None:
        if self._chid is None:
            return
        context = {
            "change": result,
            "release": {
                "code": getattr(release, "code", None),
                "date": getattr(release, "date", None),
                "commit": getattr(release, "commit", None),
            },
        }
        change_id = self._chid.render(context).strip()
        if change_id:
            result["change_id"] = change_id

    # Object-level post-processing

    def postprocess(self, data: Mapping[str, Any], *, scan: bool = False) -> dict[str, Any] | None:
        """Extract note and headline, classify tags, then keep or drop the record."""

        shaped = {key: value for key, value in data.items() if value is not None}

        heading = self.settings.get("conversions.note_heading")
        sectioned = flatten_rich_note(shaped, heading) and bool(heading)
        note_source = self.settings.get("conversions.note")
        if not sectioned and (note_source is None or note_source in NOTE_SOURCES_WITH_PATTERN):
            extract_note(shaped, self.settings.get("conversions.note_pattern"))
        extract_headline(
            shaped,
            self.settings.get("conversions.head_pattern"),
            self.settings.get("conversions.head_source"),
        )

        original_tags = shaped.get("tags")
        mapped, displayed = self.tag_policy.classify(original_tags)
        shaped["tags"] = displayed

        raw_tags = extract_raw_tags(shaped.get("raw"), original_tags)
        placeholder = self.tag_policy.placeholder_for(shaped.get("note"), raw_tags)
        if placeholder is not None:
            shaped["note"] = placeholder

        decision = self.tag_policy.decide(mapped, shaped.get("note"), raw_tags)
        if scan:
            LOGGER.debug(
                "Inclusion decision",
                extra={"ticket": shaped.get("ticket"), "decision": decision.value, "keep": decision.keep},
            )
        return shaped if decision.keep else None

    def transform_change(self, raw: Any, *, release: Release | None = None, scan: bool = False) -> Change | None:
        """Map, post-process and build one change; ``None`` when it is dropped."""

        try:
            mapped = self.map_single_change(raw, release)
            shaped = self.postprocess(mapped, scan=scan)
            if shaped is None:
                return None
            return Change.from_mapping(shaped)
        except ReleaseDraftError as exc:
            LOGGER.warning(
                "Dropping record after mapping error",
                extra={"error": str(exc), "error_type": type(exc).__name__, "error_context": exc.context},
            )
        except Exception as exc:  # one bad record must not stop the batch
            LOGGER.warning(
                "Dropping record after unexpected error",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=scan,
            )
        return None

    def _items(self, payload: Any) -> list[Any]:
        array_path = detag(self.mapping.get("changes_array_path"))
        items = payload if not array_path else self.extract(payload, array_path)
        if isinstance(items, list):
            return items
        if items is None:
            LOGGER.error(
                "No records found in payload",
                extra={"array_path": array_path, "payload_type": type(payload).__name__},
            )
            return []
        LOGGER.error(
            "Records path did not yield a list",
            extra={"array_path": array_path, "found_type": type(items).__name__},
        )
        return []

    def to_release(
        self,
        payload: Any,
        *,
        release_code: str,
        release_date: Any = None,
        release_commit: str | None = None,
        release_memo: str | None = None,
        scan: bool = False,
    ) -> Release:
        """Map every record in ``payload`` into a new :class:`Release`, in order."""

        items = self._items(payload)
        release = Release(release_code, date=release_date, commit=release_commit, memo=release_memo)
        LOGGER.debug("Mapping records", extra={"release": release_code, "records": len(items)})

        for raw in items:
            change = self.transform_change(raw, release=release, scan=scan)
            if change is not None:
                release.add_change(change)

        if not release.change_count:
            LOGGER.warning("No changes kept after mapping", extra={"release": release_code, "records": len(items)})
        else:
            with_notes = sum(1 for change in release if change.has_note)
            LOGGER.info(
                "Mapped release changes",
                extra={
                    "release": release_code,
                    "records": len(items),
                    "kept": release.change_count,
                    "with_notes": with_notes,
                },
            )
        return release


def map_payload(
    payload: Any,
    mapping: Mapping[str, Any],
    settings: Settings | Mapping[str, Any],
    *,
    release_code: str,
    **kwargs: Any,
) -> Release:
    return MappingAdapter(mapping, settings).to_release(payload, release_code=release_code, **kwargs)


__all__ = ["FIELD_POSTPROCESSORS", "MappingAdapter", "SKIP_KEYS", "map_payload"]

"""Search expressions for the review server and parsing of query results."""

import json
import logging
from typing import Any, Mapping, Sequence, Union

from pydantic import ValidationError

from gerritflow.config import TransportConfig
from gerritflow.errors import RemoteError
from gerritflow.gerrit import commands
from gerritflow.models import PatchRecord, ServerAddress
from gerritflow.services import ssh

LOG = logging.getLogger("gerritflow.gerrit.query")

QueryExpr = Union[str, Sequence[Any], Mapping[str, Any]]


def _terms(fields: Mapping[str, Any], negate: bool = False) -> list[str]:
    prefix = "-" if negate else ""
    terms: list[str] = []
    for field, value in fields.items():
        if field == "not" and not negate:
            continue
        if value is None or value is False:
            continue
        if value is True:
            terms.append(f"{prefix}is:{field}")
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        terms.extend(f"{prefix}{field}:{v}" for v in values)
    return terms


def build_query(expr: QueryExpr) -> str:
    """Turn a search expression into the server's query syntax.

    - "status:open owner:self" is used as is.
    - ("change:%s limit:1", 1234) is %-formatted.
    - {"owner": "x", "label": ["a", "b"], "starred": True,
       "not": {"branch": "y"}} becomes
      "owner:x label:a label:b is:starred -branch:y".
    """
    if isinstance(expr, str):
        return expr
    if isinstance(expr, Mapping):
        terms = _terms(expr)
        negated = expr.get("not")
        if negated:
            terms += _terms(negated, negate=True)
        return " ".join(terms)
    template, *args = expr
    return template % tuple(args)


def parse_records(output: str) -> list[PatchRecord]:
    """Parse newline-delimited JSON; the last line is a summary and is
    dropped."""
    lines = [line for line in output.split("\n") if line.strip()]
    records = []
    for line in lines[:-1]:
        try:
            records.append(PatchRecord.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            raise RemoteError(f"Unreadable query result: {line[:200]}") from e
    return records


def query_command(expr: QueryExpr) -> commands.GerritCommand:
    return commands.query(build_query(expr))


def run_query(
    expr: QueryExpr,
    address: ServerAddress,
    settings: TransportConfig | None = None,
) -> list[PatchRecord]:
    """Run a search on the server and return matching patches."""
    command = query_command(expr)
    LOG.debug("Query: %s", command.args[0])
    return parse_records(ssh.run(command, address, settings))


def query_by_number(
    number: int | str,
    address: ServerAddress,
    project: str | None = None,
    settings: TransportConfig | None = None,
) -> list[PatchRecord]:
    project = project or getattr(address, "project", None)
    return run_query(("change:%s project:%s limit:1", number, project), address, settings)


def query_by_topic(
    topic: str,
    address: ServerAddress,
    project: str | None = None,
    settings: TransportConfig | None = None,
) -> list[PatchRecord]:
    project = project or getattr(address, "project", None)
    return run_query(("project:%s topic:%s limit:1", project, topic), address, settings)

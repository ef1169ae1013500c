"""gerritflow entry point.

Usage: gerritflow <command> [options]. Run with --help for the command list.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click

from gerritflow.config import AppConfig, load_config
from gerritflow.errors import ConfigError, GerritError, NotFoundError, StateError
from gerritflow.gerrit import checkout, profiles, projects, push, query, review, squad
from gerritflow.gerrit.preconditions import require_in_repo, require_remote_upstream
from gerritflow.logging import GerritLogging
from gerritflow.models import PatchRecord, Profile
from gerritflow.prompter import ClickPrompter, Prompter
from gerritflow.services import git

LOG = logging.getLogger("gerritflow")

PROFILE_FIELDS = ("host", "port", "user")
QUERY_FIELDS = ("owner", "reviewer", "branch", "topic", "message", "age")
IS_FLAGS = ("reviewed", "starred", "watched", "drafts")


class Context:
    """Per-invocation state shared by the command handlers."""

    def __init__(self, config: AppConfig, prompter: Prompter, repo_dir: Path | None = None) -> None:
        self.config = config
        self.prompter = prompter
        self.repo_dir = repo_dir

    @property
    def settings(self):
        return self.config.transport

    def remote(self, args: argparse.Namespace) -> str:
        return getattr(args, "remote", None) or self.config.repo.default_remote


def _echo(text: str = "") -> None:
    click.echo(text)


def _print_profile(profile: Profile) -> None:
    for key, value in profile.model_dump(exclude_none=True).items():
        _echo(f"{key} = {value}")
    _echo()


def _print_patch(patch: PatchRecord) -> None:
    _echo(f"{patch.number}  {patch.subject}")
    _echo(f"  owner:  {patch.owner.name} <{patch.owner.email}>")
    _echo(f"  status: {patch.status}   branch: {patch.branch}   topic: {patch.topic or '-'}")
    if patch.url:
        _echo(f"  url:    {patch.url}")
    current = patch.current_patch_set
    if current is not None:
        for approval in current.approvals:
            _echo(f"  {approval.type}: {approval.value:+d} by {approval.by.name}")


def _topic_revisions(ctx: Context) -> list[str]:
    """Commits of the current topic not yet in its upstream, newest first."""
    if git.is_detached_head(ctx.repo_dir):
        return [git.hash_for("HEAD", ctx.repo_dir)]
    branch = git.current_branch_name(ctx.repo_dir)
    upstream = require_remote_upstream(branch, ctx.repo_dir)
    return git.rev_list("HEAD", upstream, ctx.repo_dir)


def _select_revisions(ctx: Context, args: argparse.Namespace, verb: str) -> list[str]:
    """Pick the commits to act on, oldest first.

    Several commits need --all or --interactive.
    """
    revisions = _topic_revisions(ctx)
    if len(revisions) > 1 and not (args.all or args.interactive):
        raise StateError(f"There are {len(revisions)} commits in this topic; use --all or --interactive.")
    if len(revisions) > 1 and args.interactive and not args.all:
        revisions = [
            rev
            for rev in revisions
            if ctx.prompter.confirm(f"{verb} {git.describe_hash(rev, ctx.repo_dir)}?", default=True)
        ]
    return list(reversed(revisions))


def cmd_config(ctx: Context, args: argparse.Namespace) -> int:
    if args.all:
        for profile in profiles.all_profiles(ctx.repo_dir).values():
            _print_profile(profile)
        return 0

    name = args.name or ctx.config.repo.default_profile
    overrides = {field: getattr(args, field) for field in ("host", "port", "user", "project", "url")}
    overrides = {k: v for k, v in overrides.items() if v is not None}
    exists = profiles.profile_exists(name, ctx.repo_dir)

    if not overrides and (args.edit or not exists):
        current = profiles.get_profile(name, repo_dir=ctx.repo_dir) if exists else None
        defaults = {"host": None, "port": str(profiles.DEFAULT_PORT), "user": None}
        if current is not None:
            defaults = {field: getattr(current, field) for field in PROFILE_FIELDS}
        for field in PROFILE_FIELDS:
            default = defaults[field]
            overrides[field] = ctx.prompter.text(field.capitalize(), None if default is None else str(default))

    _print_profile(profiles.get_profile(name, overrides or None, repo_dir=ctx.repo_dir))
    return 0


def _require_profile(ctx: Context, name: str | None) -> Profile:
    """Named profile, else the one this clone recorded, else the default."""
    if name is None and git.in_repo(ctx.repo_dir):
        recorded = profiles.repo_profile(ctx.config.repo.default_remote, ctx.repo_dir)
        if recorded is not None:
            return recorded
    name = name or ctx.config.repo.default_profile
    if not profiles.profile_exists(name, ctx.repo_dir):
        raise ConfigError(f'Profile "{name}" does not exist. Create it with "gerritflow config {name}".')
    return profiles.get_profile(name, repo_dir=ctx.repo_dir)


def cmd_projects(ctx: Context, args: argparse.Namespace) -> int:
    profile = _require_profile(ctx, args.profile)
    for name in projects.projects(profile, ctx.settings):
        _echo(name)
    return 0


def cmd_clone(ctx: Context, args: argparse.Namespace) -> int:
    profile = _require_profile(ctx, args.profile)
    project = args.project
    destination = args.destination
    if project is None:
        project = ctx.prompter.choose("Clone which project?", projects.projects(profile, ctx.settings))
    if destination is None and args.project is None:
        destination = ctx.prompter.text("Clone to which folder?", project)
    repo_dir = projects.clone(profile, project, destination, work_dir=ctx.repo_dir, settings=ctx.settings)
    _echo(f"Cloned {project} into {repo_dir}")
    return 0


def cmd_install_hook(ctx: Context, args: argparse.Namespace) -> int:
    hook = projects.install_hook(ctx.remote(args), ctx.repo_dir, ctx.settings)
    _echo(f"Installed {hook}")
    return 0


def _patch_query(args: argparse.Namespace) -> dict[str, Any]:
    expr: dict[str, Any] = {field: getattr(args, field) for field in QUERY_FIELDS}
    for flag in IS_FLAGS:
        expr[flag] = getattr(args, flag)
    negated = {"branch": args.not_branch, "owner": args.not_owner}
    if any(negated.values()):
        expr["not"] = negated
    return expr


def cmd_patches(ctx: Context, args: argparse.Namespace) -> int:
    require_in_repo(ctx.repo_dir)
    for patch in projects.open_patches(_patch_query(args), ctx.remote(args), ctx.repo_dir, ctx.settings):
        _echo(f"{patch.number}  {(patch.topic or '-'):<24}  {patch.owner.username or patch.owner.name}  {patch.subject}")
    return 0


def cmd_status(ctx: Context, args: argparse.Namespace) -> int:
    require_in_repo(ctx.repo_dir)
    target = args.target or git.current_branch_name(ctx.repo_dir)
    if target is None:
        raise StateError("HEAD is detached; name a change number or topic.")
    remote_ref = profiles.parse_remote(ctx.remote(args), ctx.repo_dir)
    field = "change" if target.isdigit() else "topic"
    patches = query.run_query({field: target, "project": remote_ref.project}, remote_ref, ctx.settings)
    if not patches:
        _echo(f"No changes found for {field} {target}.")
    for patch in patches:
        _print_patch(patch)
    return 0


def cmd_checkout(ctx: Context, args: argparse.Namespace) -> int:
    patch = checkout.checkout(
        args.target,
        args.patch_set,
        force=args.force,
        remote=ctx.remote(args),
        repo_dir=ctx.repo_dir,
        prompter=ctx.prompter,
        prefer=args.prefer or ctx.config.repo.prefer,
        settings=ctx.settings,
    )
    _echo(f"Checked out change {patch.number} ({patch.topic or 'no topic'})")
    return 0


def cmd_recheckout(ctx: Context, args: argparse.Namespace) -> int:
    patch = checkout.recheckout(ctx.remote(args), ctx.repo_dir, ctx.prompter, ctx.settings)
    _echo(f"Checked out latest patch set of change {patch.number}")
    return 0


def _print_assignment(ctx: Context, revisions: list[str], results) -> None:
    for index, (rev, commit_results) in enumerate(zip(revisions, results)):
        if index:
            _echo()
        _echo(git.describe_hash(rev, ctx.repo_dir))
        for result in commit_results:
            if result.success:
                _echo(f"Assigned reviewer {result.reviewer}")
            else:
                LOG.warning("Could not assign reviewer %s", result.reviewer)


def cmd_assign(ctx: Context, args: argparse.Namespace) -> int:
    require_in_repo(ctx.repo_dir)
    revisions = _select_revisions(ctx, args, "Assign reviewers to")
    results = review.assign(revisions, args.reviewers, ctx.remote(args), ctx.repo_dir, ctx.settings)
    _print_assignment(ctx, revisions, results)
    return 0


def _review_all(ctx: Context, args: argparse.Namespace, verb: str, **review_args: Any) -> int:
    require_in_repo(ctx.repo_dir)
    for rev in _select_revisions(ctx, args, verb):
        review.review(rev, remote=ctx.remote(args), repo_dir=ctx.repo_dir, settings=ctx.settings, **review_args)
        _echo(f"{verb}: {git.describe_hash(rev, ctx.repo_dir)}")
    return 0


def cmd_review(ctx: Context, args: argparse.Namespace) -> int:
    return _review_all(
        ctx, args, "Reviewed", verified=args.verified, code_review=args.code_review, message=args.message
    )


def cmd_submit(ctx: Context, args: argparse.Namespace) -> int:
    return _review_all(ctx, args, "Submitted", verified=1, code_review=2, message=args.message, action="submit")


def cmd_abandon(ctx: Context, args: argparse.Namespace) -> int:
    return _review_all(ctx, args, "Abandoned", message=args.message, action="abandon")


def cmd_comment(ctx: Context, args: argparse.Namespace) -> int:
    return _review_all(ctx, args, "Commented", message=args.message)


def cmd_up(ctx: Context, args: argparse.Namespace) -> int:
    pushed = push.push(args.remote, args.branch, args.draft, ctx.repo_dir, ctx.prompter)
    if not pushed:
        return 1
    _echo("Pushed for review." if not args.draft else "Pushed as draft.")
    if not (args.assign or args.comment):
        return 0

    revisions = _topic_revisions(ctx)
    batch = argparse.Namespace(all=True, interactive=False, remote=args.remote, reviewers=args.assign, message=args.comment)
    if len(revisions) > 1 and not ctx.prompter.confirm(
        f"There are {len(revisions)} commits in this topic. Assign/comment on all of them?", default=True
    ):
        batch.all, batch.interactive = False, True
    if args.assign:
        cmd_assign(ctx, batch)
    if args.comment:
        cmd_comment(ctx, batch)
    return 0


def cmd_ninja(ctx: Context, args: argparse.Namespace) -> int:
    """Push the topic for review and submit every commit of it."""
    require_in_repo(ctx.repo_dir)
    revisions = _topic_revisions(ctx)
    if len(revisions) > 1 and not ctx.prompter.confirm(
        f"There are {len(revisions)} commits in this topic. Push and submit all of them?", default=True
    ):
        return 1
    if not push.push(args.remote, args.branch, False, ctx.repo_dir, ctx.prompter):
        return 1
    _echo("Pushed for review.")
    batch = argparse.Namespace(all=True, interactive=False, remote=args.remote, message=None)
    return cmd_submit(ctx, batch)


def cmd_web(ctx: Context, args: argparse.Namespace) -> int:
    """Open the change HEAD belongs to in a browser."""
    require_in_repo(ctx.repo_dir)
    commit = git.hash_for("HEAD", ctx.repo_dir)
    remote_ref = profiles.parse_remote(ctx.remote(args), ctx.repo_dir)
    patches = query.run_query(("commit:%s project:%s limit:1", commit, remote_ref.project), remote_ref, ctx.settings)
    if not patches or not patches[0].url:
        raise NotFoundError(f"HEAD ({commit[:12]}) is not part of any change on {remote_ref.name}.")
    click.launch(patches[0].url)
    return 0


def cmd_topic(ctx: Context, args: argparse.Namespace) -> int:
    upstream = push.create_topic(args.name, args.upstream, ctx.repo_dir)
    _echo(f'Topic "{args.name}" created tracking {upstream}.')
    return 0


def cmd_ssh(ctx: Context, args: argparse.Namespace) -> int:
    require_in_repo(ctx.repo_dir)
    _echo(projects.ssh_passthrough(" ".join(args.command), ctx.remote(args), ctx.repo_dir, ctx.settings).rstrip("\n"))
    return 0


def _require_squad(ctx: Context, name: str) -> None:
    if not squad.exists(name, ctx.repo_dir):
        raise ConfigError(f'Squad "{name}" does not exist.')


def cmd_squad(ctx: Context, args: argparse.Namespace) -> int:
    require_in_repo(ctx.repo_dir)
    action = args.squad_action
    name = args.name
    if action == "list":
        if name is None:
            for squad_name, members in squad.get_all(ctx.repo_dir).items():
                _echo(f"{squad_name}: {', '.join(members)}")
        else:
            _require_squad(ctx, name)
            _echo(", ".join(squad.get(name, ctx.repo_dir)))
    elif action == "set":
        squad.set(name, args.reviewers, ctx.repo_dir)
        _echo(f'Reviewer(s) "{", ".join(args.reviewers)}" set to squad "{name}".')
    elif action == "add":
        squad.add(name, args.reviewers, ctx.repo_dir)
        _echo(f'Reviewer(s) "{", ".join(args.reviewers)}" added to squad "{name}".')
    elif action == "remove":
        _require_squad(ctx, name)
        removed = squad.remove(name, args.reviewers, ctx.repo_dir)
        missing = [r for r in args.reviewers if r not in removed]
        if missing:
            LOG.warning('Reviewer(s) "%s" do not exist in squad "%s".', ", ".join(missing), name)
        if removed:
            _echo(f'Reviewer(s) "{", ".join(removed)}" removed from squad "{name}".')
    elif action == "delete":
        _require_squad(ctx, name)
        squad.delete(name, ctx.repo_dir)
        _echo(f'Squad "{name}" deleted.')
    elif action == "rename":
        _require_squad(ctx, name)
        squad.rename(name, args.new_name, ctx.repo_dir)
        _echo(f'Squad "{name}" renamed to "{args.new_name}".')
    return 0


def _score(value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid score: {value}") from e


def _add_remote(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--remote", "-r", help="Local remote of the review server (default: origin)")


def _add_batch(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--all", "-a", action="store_true", help="Act on every commit of the topic")
    parser.add_argument("--interactive", "-i", action="store_true", help="Ask for each commit of the topic")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gerritflow", description="Gerrit code review from the command line")
    parser.add_argument("--config", "-c", type=Path, default=None, help="Path to YAML config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every git and ssh call")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("config", help="Show, create or edit a server profile")
    p.add_argument("name", nargs="?")
    p.add_argument("--all", action="store_true", help="Show every profile")
    p.add_argument("--edit", "-e", action="store_true", help="Edit the profile interactively")
    for field in ("host", "port", "user", "project", "url"):
        p.add_argument(f"--{field}")
    p.set_defaults(handler=cmd_config)

    p = sub.add_parser("projects", help="List projects on the server")
    p.add_argument("--profile", "-p")
    p.set_defaults(handler=cmd_projects)

    p = sub.add_parser("clone", help="Clone a project and install the commit-msg hook")
    p.add_argument("project", nargs="?")
    p.add_argument("destination", nargs="?")
    p.add_argument("--profile", "-p")
    p.set_defaults(handler=cmd_clone)

    p = sub.add_parser("install-hook", help="Install the commit-msg hook")
    _add_remote(p)
    p.set_defaults(handler=cmd_install_hook)

    p = sub.add_parser("patches", help="List open changes of this project")
    _add_remote(p)
    for field in QUERY_FIELDS:
        p.add_argument(f"--{field}")
    for flag in IS_FLAGS:
        p.add_argument(f"--{flag}", action="store_true")
    p.add_argument("--not-branch")
    p.add_argument("--not-owner")
    p.set_defaults(handler=cmd_patches)

    p = sub.add_parser("status", help="Show a change by number or topic (default: current branch)")
    p.add_argument("target", nargs="?")
    _add_remote(p)
    p.set_defaults(handler=cmd_status)

    p = sub.add_parser("checkout", help="Check out a change by number or topic")
    p.add_argument("target")
    p.add_argument("patch_set", nargs="?", type=int)
    p.add_argument("--force", "-f", action="store_true", help="Overwrite an existing topic branch")
    p.add_argument("--prefer", choices=["topic", "number"], help="How to read a target that is both")
    _add_remote(p)
    p.set_defaults(handler=cmd_checkout)

    p = sub.add_parser("recheckout", help="Check out the latest patch set of the current change")
    _add_remote(p)
    p.set_defaults(handler=cmd_recheckout)

    p = sub.add_parser("up", help="Push the current topic for review")
    p.add_argument("--remote", "-r")
    p.add_argument("--branch", "-b")
    p.add_argument("--draft", "-d", action="store_true")
    p.add_argument("--assign", nargs="*", default=[], metavar="REVIEWER")
    p.add_argument("--comment", "-m")
    p.set_defaults(handler=cmd_up)

    p = sub.add_parser("ninja", help="Push the current topic and submit it")
    p.add_argument("--remote", "-r")
    p.add_argument("--branch", "-b")
    p.set_defaults(handler=cmd_ninja)

    p = sub.add_parser("web", help="Open the current change in a browser")
    _add_remote(p)
    p.set_defaults(handler=cmd_web)

    p = sub.add_parser("review", help="Score the topic's commits")
    p.add_argument("verified", nargs="?", type=_score)
    p.add_argument("code_review", nargs="?", type=_score)
    p.add_argument("message", nargs="?")
    _add_remote(p)
    _add_batch(p)
    p.set_defaults(handler=cmd_review)

    for name, handler, help_text in (
        ("submit", cmd_submit, "Verify, approve and submit the topic's commits"),
        ("abandon", cmd_abandon, "Abandon the topic's commits"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("message", nargs="?")
        _add_remote(p)
        _add_batch(p)
        p.set_defaults(handler=handler)

    p = sub.add_parser("comment", help="Comment on the topic's commits")
    p.add_argument("message")
    _add_remote(p)
    _add_batch(p)
    p.set_defaults(handler=cmd_comment)

    p = sub.add_parser("assign", help="Add reviewers (or @squads) to the topic's commits")
    p.add_argument("reviewers", nargs="+")
    _add_remote(p)
    _add_batch(p)
    p.set_defaults(handler=cmd_assign)

    p = sub.add_parser("topic", help="Create a topic branch")
    p.add_argument("name")
    p.add_argument("upstream", nargs="?")
    p.set_defaults(handler=cmd_topic)

    p = sub.add_parser("ssh", help="Run a raw server command")
    p.add_argument("command", nargs="+")
    _add_remote(p)
    p.set_defaults(handler=cmd_ssh)

    p = sub.add_parser("squad", help="Manage reviewer squads")
    squad_sub = p.add_subparsers(dest="squad_action", required=True)
    sp = squad_sub.add_parser("list")
    sp.add_argument("name", nargs="?")
    for action in ("set", "add", "remove"):
        sp = squad_sub.add_parser(action)
        sp.add_argument("name")
        sp.add_argument("reviewers", nargs="+")
    sp = squad_sub.add_parser("delete")
    sp.add_argument("name")
    sp = squad_sub.add_parser("rename")
    sp.add_argument("name")
    sp.add_argument("new_name")
    p.set_defaults(handler=cmd_squad)

    return parser


def main(argv: list[str] | None = None, prompter: Prompter | None = None) -> int:
    """Entry point: parse arguments and dispatch to the command handler."""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    GerritLogging(config.logging, verbose=args.verbose).setup()

    handler: Callable[[Context, argparse.Namespace], int] = args.handler
    ctx = Context(config, prompter or ClickPrompter())
    try:
        return handler(ctx, args)
    except (GerritError, git.GitRunnerError) as e:
        LOG.error("%s", e)
        return 1
    except (KeyboardInterrupt, click.Abort):
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Command line interface for actions-upgrader."""

import argparse
import asyncio
import logging
import pathlib
import sys
import tomllib
import typing

import pydantic

from actions_upgrader import controller, errors, models, version

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG = pathlib.Path('config.toml')

ENVIRONMENT_HELP = """\
mandatory settings, from the configuration file or the environment:
  GITHUB_ORGNAME   GitHub organization name (or user name, with -u)
  GITHUB_TOKEN     GitHub access token
  GIT_USEREMAIL    git commit user email
  GIT_USERNAME     git commit user name
"""


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='actions-upgrader',
        description=(
            'Update the GitHub Actions used by every repository of an '
            'organization and open pull requests with the new versions.'
        ),
        epilog=ENVIRONMENT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--config',
        type=pathlib.Path,
        default=DEFAULT_CONFIG,
        help='TOML configuration file, used when it exists '
        '(default: %(default)s)',
    )
    parser.add_argument(
        '-c',
        '--skip-clone',
        action='store_true',
        help="Don't clone any repositories, use the ones in the folder",
    )
    parser.add_argument(
        '-d',
        '--dry-run',
        action='store_true',
        help="Don't push or create pull requests, only update local clones",
    )
    parser.add_argument(
        '-e',
        '--exclude',
        type=_split,
        default=None,
        help='Comma separated list of repository names to exclude',
    )
    parser.add_argument(
        '-f', '--folder', type=pathlib.Path, help='Scratch folder for clones'
    )
    parser.add_argument(
        '-k', '--no-forks', action='store_true', help='Ignore forked repos'
    )
    parser.add_argument(
        '-m',
        '--max-size',
        type=int,
        metavar='KB',
        help='Ignore repositories larger than this size in KB',
    )
    parser.add_argument(
        '-s',
        '--split',
        action='store_true',
        help='One pull request per action (not supported)',
    )
    parser.add_argument(
        '-t',
        '--teams',
        type=_split,
        default=None,
        help='Only update repositories of these comma separated teams',
    )
    parser.add_argument(
        '-u',
        '--user',
        action='store_true',
        help='GITHUB_ORGNAME is a user instead of an organization',
    )
    parser.add_argument(
        '-y',
        '--approve',
        action='store_true',
        help='Approve pushes and pull request creation',
    )
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser.parse_args(args)


def load_configuration(args: argparse.Namespace) -> models.Configuration:
    """Build the configuration from the optional TOML file, the
    environment and the command line arguments, in increasing precedence.

    Raises:
        pydantic.ValidationError: If mandatory settings are missing
        tomllib.TOMLDecodeError: If the configuration file is invalid

    """
    data: dict[str, typing.Any] = {}
    if args.config.exists():
        with args.config.open('rb') as handle:
            data = tomllib.load(handle)

    github = data.setdefault('github', {})
    acquisition = data.setdefault('acquisition', {})
    for key, value in (
        ('approve', args.approve),
        ('dry_run', args.dry_run),
        ('skip_clone', args.skip_clone),
        ('split_pull_requests', args.split),
    ):
        if value:
            data[key] = True
    if args.folder:
        data['scratch_dir'] = args.folder
    if args.user:
        github['user'] = True
    if args.teams is not None:
        github['teams'] = args.teams
    if args.exclude is not None:
        acquisition['exclude_repositories'] = args.exclude
    if args.no_forks:
        acquisition['no_forks'] = True
    if args.max_size is not None:
        acquisition['max_size_kb'] = args.max_size
    return models.Configuration.model_validate(data)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )
    for logger in ('httpcore', 'httpx'):
        logging.getLogger(logger).setLevel(
            logging.INFO if verbose else logging.WARNING
        )


def main(args: list[str] | None = None) -> int:
    parsed = parse_args(args)
    configure_logging(parsed.verbose)
    LOGGER.debug('actions-upgrader v%s', version)

    try:
        configuration = load_configuration(parsed)
    except (pydantic.ValidationError, tomllib.TOMLDecodeError) as exc:
        sys.stderr.write(f'Invalid configuration: {exc}\n\n{ENVIRONMENT_HELP}')
        return 2

    automation = controller.Automation(configuration, parsed.verbose)
    try:
        success = asyncio.run(automation.run())
    except errors.UnsupportedOperationError as exc:
        LOGGER.error('%s', exc)
        return 2
    except errors.NoRepositoriesError as exc:
        LOGGER.error('%s', exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info('Interrupted, exiting')
        return 1
    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())

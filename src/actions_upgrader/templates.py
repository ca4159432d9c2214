"""Jinja2 template rendering for pull request content.

Templates are packaged in the ``templates`` directory next to this module.
Rendering is strict (undefined variables raise) and does not keep the
template's trailing newline, so rendered output is stable byte for byte
across runs.
"""

import logging
import pathlib
import typing

import jinja2

LOGGER = logging.getLogger(__name__)
BASE_PATH = pathlib.Path(__file__).parent / 'templates'

PULL_REQUEST_BODY = BASE_PATH / 'pull-request-body.md.j2'


def render(
    source: pathlib.Path | None = None,
    template: str | None = None,
    **kwargs: typing.Any,
) -> str:
    """Render a Jinja2 template with the given variables.

    Args:
        source: Path of a template file.
        template: Template string to use instead of a source file.
        **kwargs: Variables to pass to template rendering.

    Returns:
        Rendered template as string.

    Raises:
        ValueError: If neither or both of source and template are given.
    """
    if not source and not template:
        raise ValueError('source or template is required')
    if source and template:
        raise ValueError('You can not specify both source and template')

    env = jinja2.Environment(
        autoescape=False,  # noqa: S701
        undefined=jinja2.StrictUndefined,
    )
    if isinstance(source, pathlib.Path):
        LOGGER.debug('Rendering template %s', source)
        template = source.read_text(encoding='utf-8')
    return env.from_string(template).render(**kwargs)

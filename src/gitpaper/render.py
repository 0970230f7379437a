"""Markdown rendering of an aggregated changelog.

Rendering uses a jinja2 template. Formatting helpers are passed to a
fresh environment on every call, so custom templates see the same
filters without any global registration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from jinja2 import Environment, StrictUndefined

from gitpaper.core.commits import strip_leading_emoji
from gitpaper.core.formatting import mention, short_sha, split_lines, upper_first

if TYPE_CHECKING:
    from collections.abc import Callable

    from gitpaper.config.models import RepoInfo
    from gitpaper.core.changelog import ChangelogResult

CONTRIBUTORS_TITLE = "❤️ Contributors"

DEFAULT_TEMPLATE = """\
{% for section in sections %}
### {{ section.title | section_title }}

{% for commit in section.commits %}
- {% if commit.is_breaking %}**BREAKING** {% endif %}{% if commit.scope %}**{{ commit.scope }}:** {% endif %}\
{{ commit.description | upper_first }} \
{% if repo %}([{{ commit.sha | short_sha }}]({{ repo.url }}/commit/{{ commit.sha }})){% else %}({{ commit.sha | short_sha }}){% endif %} \
by {{ commit.authors | map("mention") | join(", ") }}
{% if commit.changelog_body %}
{% for line in commit.changelog_body | split_lines %}
  > {{ line }}
{% endfor %}
{% endif %}
{% endfor %}

{% endfor %}
{% if contributors %}
### {{ contributors_title | section_title }}

{% for person in contributors %}
- {{ person | mention }}
{% endfor %}
{% endif %}
"""


def _title_filter(emoji: bool) -> Callable[[str], str]:
    if emoji:
        return lambda title: title

    def _strip(title: str) -> str:
        return strip_leading_emoji(title).strip() or title

    return _strip


def create_environment(*, emoji: bool = True) -> Environment:
    env = Environment(
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    env.filters.update(
        {
            "short_sha": short_sha,
            "split_lines": split_lines,
            "upper_first": upper_first,
            "mention": mention,
            "section_title": _title_filter(emoji),
        }
    )
    return env


def render_changelog(
    result: ChangelogResult,
    *,
    repo: RepoInfo | None = None,
    emoji: bool = True,
    template: str | None = None,
) -> str:
    """Render a changelog as Markdown.

    Args:
        result: Aggregated changelog
        repo: Repository used for commit links
        emoji: Keep leading emoji in section titles
        template: Custom jinja2 template source

    Returns:
        Markdown text; empty when there is nothing to report
    """
    env = create_environment(emoji=emoji)
    compiled = env.from_string(template or DEFAULT_TEMPLATE)
    rendered = compiled.render(
        sections=result.sections,
        contributors=result.contributors or (),
        contributors_title=CONTRIBUTORS_TITLE,
        repo=repo,
    )
    rendered = rendered.strip()
    return f"{rendered}\n" if rendered else ""

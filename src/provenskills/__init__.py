"""ProvenSkills — versioned local store for SKILL.md packages.

Builds a skill directory into an artifact after validating the
frontmatter of its SKILL.md, and keeps every artifact under
{store}/{name}/{version}/ next to a generated manifest.json.
"""

__version__ = "0.1.0"

STORE_HOME = "~/.psk/store"
STORE_ENV_VAR = "PSK_STORE"

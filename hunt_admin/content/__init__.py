"""Game content stored as JSON files in a branch-versioned repository.

Repository layout:
  public/
    config.json                 Legacy game, published
    missions.json
    draft/                      Legacy game, draft
      config.json
      missions.json
    games/
      <slug>/                   Published content of one game
        config.json
        missions.json
        draft/                  Draft content of that game
          config.json
          missions.json
  game/public/games/<slug>/     Mirror of published content read by the
                                player site (slugged games only)

Documents are pretty-printed JSON with a trailing newline. Their schema
(mission definitions, settings) is owned by the editor UI and passed
through untouched.

Save writes one channel, one file per commit. New games are seeded into
their draft channel through the same path. Publish reads the most
specific existing content (see paths.candidate_paths) and writes the
published copy and its mirror in a single commit.
"""

# Re-export public symbols so `from hunt_admin import content` is enough.

from .errors import (  # noqa: F401
    CommitError,
    ConflictError,
    ContentError,
    NotFoundError,
    ResolutionError,
    StoreError,
    ValidationError,
)

from .paths import (  # noqa: F401
    CHANNELS,
    LEGACY_TOKENS,
    Channel,
    candidate_paths,
    destination_base,
    is_legacy,
    is_valid_slug,
    join_path,
    mirror_path,
    normalize_slug,
    serialize_document,
    slug_label,
    slugify,
)

from .store import (  # noqa: F401
    BranchRef,
    CommitFile,
    CommitResult,
    ContentStore,
    MemoryStore,
    StoredFile,
    WriteResult,
)

from .github import (  # noqa: F401
    GitHubStore,
    RefCache,
)

from .requests import (  # noqa: F401
    CreateGameRequest,
    PublishRequest,
    SaveRequest,
    parse_request,
)

from .publishing import (  # noqa: F401
    build_publish_files,
    probe,
    publish,
    read_pair,
    save,
)

from .games import (  # noqa: F401
    create_game,
    list_games,
    load_game,
)

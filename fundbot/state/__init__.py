from fundbot.state.checkpoint import (
    Checkpoint,
    build_default_checkpoint,
    load_checkpoint,
    save_checkpoint,
)

__all__ = ["Checkpoint", "build_default_checkpoint", "load_checkpoint", "save_checkpoint"]

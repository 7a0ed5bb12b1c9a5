from .provisioner import PipeProvisioner, PosixPipeCreator, WindowsPipeCreator, default_pipe_creator
from .reader import LineAccumulator, PipeReader, ReaderState
from .stream import PipeStream, ThreadedPipeOpener
from .watcher import PipeWatcher

__all__ = [
    "PipeProvisioner",
    "PosixPipeCreator",
    "WindowsPipeCreator",
    "default_pipe_creator",
    "LineAccumulator",
    "PipeReader",
    "ReaderState",
    "PipeStream",
    "ThreadedPipeOpener",
    "PipeWatcher",
]

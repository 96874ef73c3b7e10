# util/timing.py
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "search", session=sid, docs=3):
          ...
    Emits one line on exit:
      INFO    "<name>.done ms=<int> key=val ..."
      WARNING "<name>.failed ms=<int> error=<ExcType> key=val ..." (then re-raises)
    """
    started = time.perf_counter()
    fields = "".join(f" {k}={v}" for k, v in kv.items())
    try:
        yield
    except Exception as e:
        logger.warning(
            "%s.failed ms=%d error=%s%s", name, _elapsed_ms(started), type(e).__name__, fields
        )
        raise
    logger.info("%s.done ms=%d%s", name, _elapsed_ms(started), fields)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)

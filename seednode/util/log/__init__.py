import logging


class _Logger(logging.Logger):
    def getEffectiveLevel(self) -> int:
        from seednode.util.log.level import get_log_level
        return get_log_level(self.name)


def init_logging():
    logging.setLoggerClass(_Logger)
    import sys
    from seednode.util.log.format import COLORFUL, TextFormatter, StructFormatter
    from seednode.util.log.level import get_log_level
    f = TextFormatter(COLORFUL) if sys.stderr.isatty() else StructFormatter()
    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(f)

    # the root logger is created before our logger class is installed
    logging.getLogger().setLevel(get_log_level('root'))

    logging.basicConfig(handlers=[h])

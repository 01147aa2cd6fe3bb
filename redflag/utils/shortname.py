import logging


class ShortNameFilter(logging.Filter):
    def filter(self, record):
        path = record.name.split(".")
        record.shortname = "-".join(path[-2:])
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(shortname)s: %(message)s",
    )
    # handler-level so records propagated from child loggers get a shortname too
    for handler in logging.getLogger().handlers:
        handler.addFilter(ShortNameFilter())

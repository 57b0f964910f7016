"""Run the operator with ``python -m object_storage_operator``."""

import kopf

from . import main  # noqa: F401  registers the startup and Bucket handlers


def run() -> None:
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    run()

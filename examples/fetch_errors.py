"""Example showing yade's derives on a small fetch client's errors.

Run with: python examples/fetch_errors.py
"""

from typing import Annotated

from yade import Cause, Variant, display, error, kind


@kind
class Stage:
    @display("while connecting")
    class Connect(Variant):
        pass

    @display("while reading {} byte(s)", "_0")
    class Read(Variant):
        _0: int

    class Decode(Variant):
        pass


@error
@display("fetch of {} failed {}", "url", "stage")
class FetchError(Exception):
    url: str
    stage: Stage
    source: Annotated[Exception | None, Cause()]


@error
class ConfigError(Exception):
    @display("missing key {}", "key")
    class MissingKey(Variant):
        key: str

    @display("cannot read {}", 0)
    class Unreadable(Variant):
        _0: str
        _1: Annotated[OSError, Cause()]


def load(path: str) -> str:
    try:
        with open(path) as f:
            return f.read()
    except OSError as e:
        raise ConfigError.Unreadable(path, e) from e


if __name__ == "__main__":
    err = FetchError(url="https://example.com", stage=Stage.Read(512), source=TimeoutError("slow"))
    print(err)
    print("  caused by:", err.cause())

    try:
        load("/nonexistent/settings.toml")
    except ConfigError as e:
        print(e)
        print("  caused by:", e.cause())
        print("  description:", e.description())

    print(ConfigError.MissingKey("token"))
    print(Stage.Decode())

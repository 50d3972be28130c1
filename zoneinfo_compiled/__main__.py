import logging
import sys

from .errors import DecodeError
from .tzif import Zone, from_path


def dump(zone: Zone) -> None:
    print(f"version: {zone.version}")
    print(f"rule: {zone.rule.posix_string if zone.rule is not None else '-'}")
    for transition in zone.transitions:
        print(
            f"{transition.at:>12}  "
            f"{transition.transition_time_utc:%Y-%m-%d %H:%M:%S} UTC  "
            f"name:{transition.abbreviation:<6} "
            f"offset:{transition.utc_offset_secs:>6} "
            f"DST:{transition.is_dst!s:<5} "
            f"type:{transition.kind.value}"
        )
    for leap_second in zone.leap_seconds:
        print(
            f"leap second at {leap_second.transition_time}: "
            f"correction {leap_second.correction}"
        )


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if args and args[0] == "-v":
        logging.basicConfig(level=logging.DEBUG)
        args = args[1:]
    if not args:
        print("usage: python -m zoneinfo_compiled [-v] FILE...", file=sys.stderr)
        return 2

    status = 0
    for path in args:
        print(f"{path}:")
        try:
            zone = from_path(path)
        except (OSError, DecodeError) as exc:
            print(f"Couldn't read {path}: {exc}", file=sys.stderr)
            status = 1
            continue
        dump(zone)
    return status


if __name__ == "__main__":
    sys.exit(main())

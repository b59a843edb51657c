#!/usr/bin/env python3
"""
Command-line interface for pyjclass - inspect and round-trip Java class files.
"""

import argparse
import logging
import sys
from dataclasses import fields
from pathlib import Path

from .classfile import ClassFile, load
from .constants import Constant, DoubleInfo, FloatInfo, Utf8Info
from .descriptors import MethodDescriptor
from .errors import ClassFileError
from .flags import CLASS_FLAGS, FIELD_FLAGS, METHOD_FLAGS, flag_names


def describe_constant(entry: Constant) -> str:
    """One-line rendering of a pool entry, e.g. ``Methodref class_index=#3, ...``."""
    kind = type(entry).__name__.removesuffix("Info")
    if isinstance(entry, Utf8Info):
        return f"{kind} {entry.value!r}"
    if isinstance(entry, (FloatInfo, DoubleInfo)):
        return f"{kind} {entry.value!r}"
    parts = []
    for f in fields(entry):
        value = getattr(entry, f.name)
        if f.name.endswith("_index"):
            parts.append(f"{f.name}=#{value}")
        else:
            parts.append(f"{f.name}={value}")
    return f"{kind} {', '.join(parts)}"


def _attribute_names(attributes, pool) -> str:
    names = []
    for attribute in attributes:
        name = pool.lookup_utf8(attribute.name_index)
        names.append(name if name is not None else f"#{attribute.name_index}")
    return ", ".join(names) if names else "-"


def _describe_member(member, pool, flag_table) -> str:
    flags = " ".join(flag_names(member.access_flags, flag_table))
    name = pool.lookup_utf8(member.name_index) or f"#{member.name_index}"
    try:
        descriptor = member.parsed_descriptor(pool)
    except ClassFileError:
        rendered = f"{name} {pool.lookup_utf8(member.descriptor_index)!r}"
    else:
        if isinstance(descriptor, MethodDescriptor):
            rendered = descriptor.format(name)
        else:
            rendered = f"{descriptor.java_name} {name}"
    return f"{flags} {rendered}".strip()


def format_class(cf: ClassFile) -> str:
    """Human-readable listing of a loaded class file."""
    pool = cf.constant_pool
    lines = []

    def class_name(index):
        try:
            return cf.constant_pool.get_class_name(index)
        except ClassFileError:
            return f"#{index}"

    header = f"class {class_name(cf.this_class)}"
    if cf.super_class:
        header += f" extends {class_name(cf.super_class)}"
    lines.append(header)
    lines.append(f"  version: {cf.major_version}.{cf.minor_version}")
    lines.append(f"  flags: {' '.join(flag_names(cf.access_flags, CLASS_FLAGS))}")
    if cf.interfaces:
        lines.append(f"  interfaces: {', '.join(class_name(i) for i in cf.interfaces)}")

    lines.append(f"Constant pool (count {len(pool)}):")
    for index, entry in pool.items():
        lines.append(f"  #{index} = {describe_constant(entry)}")

    lines.append(f"Fields ({len(cf.fields)}):")
    for fld in cf.fields:
        lines.append(f"  {_describe_member(fld, pool, FIELD_FLAGS)}")
        lines.append(f"    attributes: {_attribute_names(fld.attributes, pool)}")

    lines.append(f"Methods ({len(cf.methods)}):")
    for method in cf.methods:
        lines.append(f"  {_describe_member(method, pool, METHOD_FLAGS)}")
        lines.append(f"    attributes: {_attribute_names(method.attributes, pool)}")

    lines.append(f"Attributes: {_attribute_names(cf.attributes, pool)}")
    return "\n".join(lines)


def dump_command(args):
    """Print the structure of class files."""
    for class_file in args.files:
        path = Path(class_file)
        if not path.exists():
            print(f"Error: File not found: {class_file}", file=sys.stderr)
            sys.exit(1)

        try:
            with open(path, "rb") as f:
                cf = load(f, raw_attributes=args.raw)
        except (ClassFileError, OSError) as e:
            print(f"Error reading {class_file}: {e}", file=sys.stderr)
            sys.exit(1)
        print(format_class(cf))


def _first_difference(a: bytes, b: bytes) -> int:
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return i
    return min(len(a), len(b))


def roundtrip_command(args):
    """Load and store class files, checking the output is byte-identical."""
    failures = 0
    for class_file in args.files:
        path = Path(class_file)
        try:
            data = path.read_bytes()
            output = load(data, raw_attributes=args.raw).to_bytes()
        except (ClassFileError, OSError) as e:
            print(f"Error round-tripping {class_file}: {e}", file=sys.stderr)
            failures += 1
            continue

        if output == data:
            if not args.quiet:
                print(f"OK {class_file}")
        else:
            offset = _first_difference(data, output)
            print(f"MISMATCH {class_file}: first difference at offset {offset} "
                  f"({len(data)} bytes in, {len(output)} bytes out)")
            failures += 1

    if failures:
        sys.exit(1)


def main(argv=None):
    """Main entry point for pyjclass CLI."""
    parser = argparse.ArgumentParser(
        prog="pyjclass",
        description="Read, inspect and rewrite Java class files",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Dump command
    dump_parser = subparsers.add_parser(
        "dump",
        help="Print the structure of class files",
    )
    dump_parser.add_argument(
        "files",
        nargs="+",
        help="Class files to dump",
    )
    dump_parser.add_argument(
        "--raw",
        action="store_true",
        help="Keep all attributes as raw bytes",
    )
    dump_parser.set_defaults(func=dump_command)

    # Roundtrip command
    roundtrip_parser = subparsers.add_parser(
        "roundtrip",
        help="Check that load + store reproduces class files byte for byte",
    )
    roundtrip_parser.add_argument(
        "files",
        nargs="+",
        help="Class files to check",
    )
    roundtrip_parser.add_argument(
        "--raw",
        action="store_true",
        help="Keep all attributes as raw bytes",
    )
    roundtrip_parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only report mismatches",
    )
    roundtrip_parser.set_defaults(func=roundtrip_command)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
import argparse
import json
import sys

from stagecraft.orchestrator import describe_config, run_once


def main(argv=None):
    parser = argparse.ArgumentParser(description="Stagecraft CLI")
    parser.add_argument("--config", required=True, help="Path to YAML pipeline config")
    parser.add_argument("--text", help="Input text (defaults to stdin)")
    parser.add_argument("--normalize", dest="normalize", action="store_true", help="Run the configured normalizer")
    parser.add_argument("--no-normalize", dest="normalize", action="store_false", help="Skip the configured normalizer")
    parser.add_argument("--pre-tokenize", dest="pre_tokenize", action="store_true", help="Run the configured pre-tokenizer")
    parser.add_argument("--no-pre-tokenize", dest="pre_tokenize", action="store_false", help="Skip the configured pre-tokenizer")
    parser.add_argument("--describe", action="store_true", help="Print the configured stage kinds instead of running")
    parser.add_argument("--indent", type=int, default=None, help="JSON indent for output")
    parser.set_defaults(normalize=None, pre_tokenize=None)
    args = parser.parse_args(argv)

    if args.describe:
        out = describe_config(args.config)
    else:
        text = args.text if args.text is not None else sys.stdin.read()
        out = run_once(
            args.config,
            text,
            normalize=args.normalize,
            pre_tokenize=args.pre_tokenize,
        )

    print(json.dumps(out, ensure_ascii=False, indent=args.indent))


if __name__ == "__main__":
    main()

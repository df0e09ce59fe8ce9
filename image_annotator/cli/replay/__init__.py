# flake8: noqa E501

import json
import logging
from gettext import gettext as _
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Replay a scripted annotation session and print its events")


def command(subparser):
    subparser.add_argument("script", type=Path, help=_("JSON script to replay"))
    subparser.add_argument(
        "--headless",
        action="store_true",
        help=_("Run without editor: selection changes save pending edits"),
    )
    subparser.add_argument(
        "--read-only",
        dest="read_only",
        action="store_true",
        help=_("Treat every annotation as read-only"),
    )
    subparser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        help=_("Where to save the final annotations as JSON"),
    )

    def handle(args):
        import os

        from image_annotator.cli.replay.replay import run_script
        from image_annotator.utils.env import load_cfg_from_env

        assert args.script.exists() and args.script.is_file(), _(
            "Script must exist and be a file"
        )
        script = json.loads(args.script.read_text())

        options = load_cfg_from_env({}, dict(os.environ))
        if args.headless:
            options["disable_editor"] = True
        if args.read_only:
            options["read_only"] = True

        events, annotator = run_script(script, options)
        for event in events:
            print(json.dumps(event))

        if args.output is not None:
            annotations = [a.to_dict() for a in annotator.get_annotations()]
            args.output.write_text(json.dumps(annotations, indent=2))
            logger.info(
                _("Saved {count} annotations to {path}").format(
                    count=len(annotations), path=args.output
                )
            )

    return handle

import json
import logging
from gettext import gettext as _
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Cut the image region of one annotation out of an image")


def load_annotations(path: Path):
    from image_annotator.core.annotation import Annotation

    data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("annotations", [])
    return [Annotation.from_dict(a) for a in data]


def command(subparser):
    subparser.add_argument("image", type=Path, help=_("Image the annotations refer to"))
    subparser.add_argument(
        "annotations", type=Path, help=_("JSON file with a list of annotations")
    )
    subparser.add_argument("annotation_id", type=str, help=_("Annotation to cut out"))
    subparser.add_argument("output", type=Path, help=_("Where to save the snippet"))

    def handle(args):
        import cv2

        from image_annotator.annotator import ImageAnnotator
        from image_annotator.core.layer import InMemoryAnnotationLayer

        assert args.image.exists() and args.image.is_file(), _(
            "Image must exist and be a file"
        )
        assert args.annotations.exists(), _("Annotation file must exist")

        image = cv2.imread(str(args.image), cv2.IMREAD_COLOR)
        assert image is not None, _("Could not read image {path}").format(
            path=args.image
        )

        layer = InMemoryAnnotationLayer(image=image, read_only=True)
        annotator = ImageAnnotator(layer, {"disableEditor": True, "readOnly": True})
        annotator.set_annotations(load_annotations(args.annotations))

        selected = annotator.select_annotation(args.annotation_id)
        assert selected is not None, _("No annotation with id {id}").format(
            id=args.annotation_id
        )

        snippet = annotator.get_selected_image_snippet()
        assert snippet is not None, _("Annotation lies outside of the image")

        cv2.imwrite(str(args.output), snippet)
        logger.info(
            _("Saved {w}x{h} snippet to {path}").format(
                w=snippet.shape[1], h=snippet.shape[0], path=args.output
            )
        )

    return handle

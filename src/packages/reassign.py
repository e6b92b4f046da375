"""Change the content class of a live content object."""

import logging

from errors import InvalidReference
from repository.base import CacheManager, ContentClassStore, ContentObjectStore

logger = logging.getLogger(__name__)


def change_class(
    object_id,
    class_identifier: str,
    objects: ContentObjectStore,
    classes: ContentClassStore,
    cache: CacheManager,
) -> None:
    """Make object ``object_id`` an instance of class ``class_identifier``.

    The object is stored and its cached renderings are invalidated.

    Raises:
        InvalidReference: If either the object or the class does not exist.
            Nothing is modified in that case.
    """
    obj = objects.fetch_object(object_id)
    class_ref = classes.fetch_class_by_identifier(class_identifier)

    if obj is None or class_ref is None:
        raise InvalidReference(object_id, class_identifier)

    logger.info('Changing object "%s" to be of class "%s"', obj.name, class_ref.identifier)

    obj.set_class(class_ref)
    obj.store()
    cache.invalidate(obj.id)

from typing import List, Literal, TypedDict

from bson import ObjectId


ItemCategory = Literal["books", "electronics", "furniture", "clothing", "other"]


class ItemDocument(TypedDict, total=False):

    _id: ObjectId
    title: str
    photos: List[str]
    category: ItemCategory


ITEM_SUMMARY_FIELDS = ("title", "photos", "category")

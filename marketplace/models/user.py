from typing import Optional, TypedDict

from bson import ObjectId


class UserDocument(TypedDict, total=False):

    _id: ObjectId
    email: str
    firstName: str
    lastName: str
    profilePhoto: Optional[str]


USER_SUMMARY_FIELDS = ("firstName", "lastName", "email", "profilePhoto")

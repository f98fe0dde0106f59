import logging

from django.db.models import F
from django.utils import timezone

from core.api import ApiView, OwnedCollectionView, OwnedObjectView, json_response
from core.errors import NotFound, ValidationError
from core.payloads import Field, short_text, text

from .models import CommunityTip

logger = logging.getLogger(__name__)

TIP_FIELDS = {
    "title": Field("title", short_text, required=True),
    "content": Field("content", text, required=True),
    "category": Field("category", lambda value: text(value, max_length=100), required=True),
}


def _tip_json(tip: CommunityTip) -> dict:
    return {
        "id": tip.pk,
        "userId": tip.user_id,
        "title": tip.title,
        "content": tip.content,
        "category": tip.category,
        "votes": tip.votes,
        "date": tip.date,
    }


class TipListView(OwnedCollectionView):
    """Tips are public: everyone sees every user's tips."""

    model = CommunityTip
    fields = TIP_FIELDS
    anonymous_methods = ("get",)

    def get_queryset(self, request):
        return CommunityTip.objects.order_by("-date", "-id")

    def prepare(self, request, data):
        data["votes"] = 0
        data["date"] = timezone.now()
        return data

    def serialize(self, obj):
        return _tip_json(obj)


class TipDetailView(OwnedObjectView):
    model = CommunityTip
    fields = TIP_FIELDS
    label = "Tip"
    anonymous_methods = ("get",)

    def serialize(self, obj):
        return _tip_json(obj)

    def get(self, request, pk):
        tip = CommunityTip.objects.filter(pk=pk).first()
        if tip is None:
            raise NotFound("Tip not found")
        return json_response(_tip_json(tip))


class TipVoteView(ApiView):
    def post(self, request, pk):
        if not CommunityTip.objects.filter(pk=pk).exists():
            raise NotFound("Tip not found")
        vote = self.payload(request).get("vote")
        if not isinstance(vote, bool):
            raise ValidationError("Vote is required (true for upvote, false for downvote)")
        CommunityTip.objects.filter(pk=pk).update(votes=F("votes") + (1 if vote else -1))
        tip = CommunityTip.objects.get(pk=pk)
        logger.info("User %s voted %s on tip %s", request.api_user.pk, "up" if vote else "down", pk)
        return json_response(_tip_json(tip))

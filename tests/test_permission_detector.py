import pytest

from grouprecon.workflows.permission_detector import PermissionProfile, compile_phrases, detect_permissions

VIEW_ONLY = """
<html><body>
  <div class="perm"><span>Anyone on the web</span> can view conversations</div>
  <div class="perm">Only members can see the member list</div>
</body></html>
"""

OPEN_GROUP = """
<html><body>
  <div>Anyone on the web can view conversations</div>
  <div>Anyone on the web can join group</div>
  <div>Anyone on the web can post</div>
</body></html>
"""


def test_view_only_fixture():
    profile = detect_permissions(VIEW_ONLY)
    assert profile == PermissionProfile(is_public=True, can_view=True, can_join=False, can_post=False)
    assert profile.requires_auth is False


def test_all_capabilities_detected_independently():
    profile = detect_permissions(OPEN_GROUP)
    assert (profile.can_view, profile.can_join, profile.can_post) == (True, True, True)


def test_phrase_split_by_long_markup_is_found_in_visible_text():
    html = (
        "<div>Anyone on the web</div>"
        f'<span class="{"x" * 80}">can post</span>'
    )
    profile = detect_permissions(html)
    assert profile.can_post is True
    assert profile.can_view is False


def test_window_does_not_reach_unrelated_sentences():
    html = "Anyone on the web " + "lorem ipsum " * 10 + "can view conversations"
    assert detect_permissions(html).can_view is False


def test_raw_markup_window_stops_at_line_breaks():
    html = "<div>Anyone on the web</div>\n<script>var label = 'can post';</script>"
    assert detect_permissions(html).can_post is False


def test_line_broken_phrase_in_text_is_found_in_visible_text():
    html = "<p>Anyone on the web\n  can view conversations</p>"
    assert detect_permissions(html).can_view is True


def test_custom_phrases_replace_defaults_per_capability():
    phrases = compile_phrases({"view": [r"Public archive"]})
    profile = detect_permissions("<p>Public archive</p><p>Anyone on the web can post</p>", phrases)
    assert profile.can_view is True
    assert profile.can_post is True


@pytest.mark.parametrize(
    "profile, require_post, expected",
    [
        (PermissionProfile(is_public=True, can_view=True), False, True),
        (PermissionProfile(is_public=True, can_join=True), False, True),
        (PermissionProfile(is_public=True), False, False),
        (PermissionProfile(is_public=True, can_view=True), True, False),
        (PermissionProfile(is_public=True, can_view=True, can_post=True), True, True),
        (PermissionProfile(is_public=True, can_post=True), True, False),
        (PermissionProfile.auth_required(), False, False),
    ],
)
def test_exposure_policy(profile, require_post, expected):
    assert profile.is_exposed(require_post=require_post) is expected


def test_describe_lists_every_flag():
    line = PermissionProfile(is_public=True, can_view=True).describe("team@example.com")
    assert line == (
        "Group: team@example.com | Public: True | View: True | Post: False | Join: False | RequireAuth: False"
    )

from rpc_client_gen.analysis.paths import build_full_api_path, interpolate_path, path_tokens


class TestBuildFullApiPath:
    def test_joins_all_segments(self):
        assert build_full_api_path("/api", "v1", "users", "/:id") == "/api/v1/users/:id"

    def test_strips_extra_slashes(self):
        assert build_full_api_path("/api/", "/v1/", "/users/", "") == "/api/v1/users"

    def test_root_path_keeps_trailing_slash(self):
        assert build_full_api_path("", "", "users", "/") == "/users/"

    def test_empty_is_root(self):
        assert build_full_api_path() == "/"
        assert build_full_api_path(path="/") == "/"


class TestInterpolatePath:
    def test_replaces_colon_token(self):
        path = interpolate_path("/users/:id", [":id"])
        assert path == "/users/${id}"
        assert ":id" not in path

    def test_ignores_tokens_without_colon(self):
        assert interpolate_path("/users/:id", ["id"]) == "/users/:id"

    def test_does_not_touch_longer_names(self):
        assert interpolate_path("/a/:idx/:id", [":id"]) == "/a/:idx/${id}"

    def test_multiple_tokens(self):
        path = interpolate_path("/users/:userId/posts/:postId", [":postId", None, ":userId"])
        assert path == "/users/${userId}/posts/${postId}"
        assert path_tokens(path) == ["userId", "postId"]

    def test_empty_base_path(self):
        assert interpolate_path("", [":id"]) == "/"

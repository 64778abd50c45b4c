from datetime import timezone

import pytest

from rpc_client_gen.errors import ClientEmissionError
from rpc_client_gen.generator.client import ClientGenerator, response_type
from rpc_client_gen.schema.base import SchemaRecord
from conftest import make_route


def _users_routes():
    return [
        make_route(
            "UsersController", "list_users", full_path="/api/v1/users", returns="UserList",
            params=[(0, "page", "number", "query", "page")],
        ),
        make_route(
            "UsersController", "get_user", full_path="/api/v1/users/${id}", returns="User",
            params=[(0, "id", "string", "param", ":id")],
        ),
        make_route(
            "UsersController", "create_user", method="POST", full_path="/api/v1/users", returns="User",
            params=[(0, "body", "CreateUserDto", "body", None)],
        ),
    ]


def _record(name):
    return SchemaRecord(
        type=name,
        document={"definitions": {}},
        typescript_type=f"export interface {name} {{\n\t// No schema definition found\n}}",
    )


@pytest.fixture
def generator():
    return ClientGenerator()


class TestResponseType:
    def test_strips_one_promise_layer(self):
        assert response_type("Promise<User>") == "User"
        assert response_type("Promise<Promise<User>>") == "Promise<User>"

    def test_plain_and_missing(self):
        assert response_type("User[]") == "User[]"
        assert response_type(None) == "any"
        assert response_type("") == "any"

    def test_union_of_promises_is_kept(self):
        assert response_type("Promise<A> | Promise<B>") == "Promise<A> | Promise<B>"

    def test_nested_generics(self):
        assert response_type("Promise<Page<Item>>") == "Page<Item>"
        assert response_type("Promise<Record<string, () => void>>") == "Record<string, () => void>"


class TestClientGenerator:
    def test_module_layout(self, generator):
        text = generator.generate(_users_routes(), [_record("User")]).text
        assert text.index("export type RequestOptions") < text.index("export class ApiClient {")
        assert text.index("export class ApiClient {") < text.index("export class RpcClient extends ApiClient {")
        assert text.index("export class RpcClient extends ApiClient {") < text.index("export interface User {")
        assert text.endswith("}\n")

    def test_accessor_per_controller(self, generator):
        text = generator.generate(_users_routes(), []).text
        assert "\tget users() {\n\t\treturn {\n" in text

    def test_controllers_in_first_seen_order(self, generator):
        routes = [
            make_route("PostsController", "list_posts"),
            make_route("UsersController", "list_users"),
            make_route("PostsController", "create_post", method="POST"),
        ]
        text = generator.generate(routes, []).text
        assert text.index("get posts()") < text.index("get users()")
        assert text.index("list_posts:") < text.index("create_post:") < text.index("get users()")

    def test_query_only_method_has_optional_options(self, generator):
        text = generator.generate(_users_routes(), []).text
        assert (
            "\t\t\tlist_users: (options?: RequestOptions<never, { page: number }, never, never>)"
            ": Promise<ApiResponse<UserList>> =>\n"
            "\t\t\t\tthis.request<UserList>('GET', '/api/v1/users', options)"
        ) in text

    def test_path_parameters_are_interpolated(self, generator):
        text = generator.generate(_users_routes(), []).text
        assert (
            "\t\t\tget_user: (options: RequestOptions<{ id: string }, never, never, never>)"
            ": Promise<ApiResponse<User>> => {\n"
            "\t\t\t\tconst { id } = options.params\n"
            "\t\t\t\treturn this.request<User>('GET', `/api/v1/users/${id}`, options)\n"
            "\t\t\t}"
        ) in text

    def test_body_makes_options_required(self, generator):
        text = generator.generate(_users_routes(), []).text
        assert "create_user: (options: RequestOptions<never, never, CreateUserDto, never>)" in text
        assert "this.request<User>('POST', '/api/v1/users', options)" in text
        assert "create_user: (options?:" not in text

    def test_headers_and_untyped_path_tokens(self, generator):
        route = make_route(
            "PostsController", "list_posts", full_path="/api/v1/users/${authorId}/posts", returns="Post[]",
            params=[(1, "api_key", "string", "header", "x-api-key")],
        )
        text = generator.generate([route], []).text
        assert "RequestOptions<{ authorId: string }, never, never, { 'x-api-key': string }>" in text
        assert "const { authorId } = options.params" in text

    def test_untyped_route(self, generator):
        text = generator.generate([make_route("HealthController", "ping", full_path="/health")], []).text
        assert (
            "ping: (options?: RequestOptions<never, never, never, never>): Promise<ApiResponse<any>> =>"
        ) in text

    def test_promise_return_is_unwrapped(self, generator):
        route = make_route("UsersController", "me", full_path="/me", returns="Promise<User>")
        text = generator.generate([route], []).text
        assert "Promise<ApiResponse<User>>" in text
        assert "this.request<User>('GET', '/me', options)" in text

    def test_interfaces_deduplicated(self, generator):
        text = generator.generate(_users_routes(), [_record("User"), _record("User"), _record("Post")]).text
        assert text.count("export interface User {") == 1
        assert text.index("export interface User {") < text.index("export interface Post {")

    def test_records_without_declaration_are_skipped(self, generator):
        record = SchemaRecord(type="Ghost", document={})
        text = generator.generate([], [record]).text
        assert "Ghost" not in text

    def test_output_is_deterministic(self, generator):
        first = generator.generate(_users_routes(), [_record("User")])
        second = generator.generate(_users_routes(), [_record("User")])
        assert first.text == second.text
        assert first.generated_at.tzinfo is timezone.utc

    def test_no_routes(self, generator):
        text = generator.generate([], []).text
        assert "export class ApiClient {" in text
        assert "extends ApiClient {" not in text
        assert "\tget " not in text

    def test_invalid_routes_raise(self, generator):
        routes = [make_route("UsersController", "list_users"), make_route("UsersController", "list_users")]
        with pytest.raises(ClientEmissionError) as exc_info:
            generator.generate(routes, [])
        assert "UsersController.list_users: handler is registered for more than one route" in str(exc_info.value)

    def test_options_path_token_raises(self, generator):
        route = make_route(
            "ItemsController", "get_item", full_path="/items/${options}",
            params=[(0, "options", "string", "param", ":options")],
        )
        with pytest.raises(ClientEmissionError, match="path parameter 'options'"):
            generator.generate([route], [])

    def test_shared_declaration_name_raises(self, generator):
        with pytest.raises(ClientEmissionError, match="'ApiError' clashes"):
            generator.generate(_users_routes(), [_record("ApiError")])

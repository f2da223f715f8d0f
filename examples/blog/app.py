"""Blog API — controllers, CORS for a separate frontend, session login.

Two controllers share the ``/api/user`` prefix family: ``UserController``
at ``/api/user`` and ``AdminController`` at ``/api/user/admin``, showing
that the longest base path wins. A frontend served from
``http://localhost:8081`` may call the API with credentials.

Run:
    cd examples/blog && python app.py

Or with the CLI:
    wren routes app:app
    wren run app:app --reload
"""

import threading
from dataclasses import dataclass
from typing import Annotated

from wren import (
    App,
    AppConfig,
    CorsPolicy,
    FromBody,
    FromQuery,
    Json,
    NoContent,
    Ok,
    api_controller,
    authorize,
    http_delete,
    http_get,
    http_post,
)
from wren.middleware import SessionConfig, SessionMiddleware
from wren.responses import NotFound, Unauthorized
from wren.security import AuthUser, SessionAuthenticator

SECRET_KEY = "change-me-in-production"

auth = SessionAuthenticator()

app = App(
    AppConfig(secret_key=SECRET_KEY, debug=True),
    cors=(
        CorsPolicy()
        .allow_origin("http://localhost:8081")
        .allow_methods("GET", "POST", "PUT", "DELETE")
        .allow_headers("Content-Type", "Authorization")
        .with_credentials()
    ),
    authenticator=auth,
)
app.add_middleware(SessionMiddleware(SessionConfig(secret_key=SECRET_KEY)))


# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Post:
    id: str
    title: str
    author: str


_users = {"example@example.com": AuthUser(id="1", email="example@example.com", roles=("admin",))}
_posts: dict[str, Post] = {}
_next_id = 1
_lock = threading.Lock()


def _get_next_id() -> str:
    global _next_id
    with _lock:
        n = _next_id
        _next_id += 1
        return str(n)


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


@api_controller("/api/user")
class UserController:
    @http_get("")
    def index(self):
        return {"users": [user.email for user in _users.values()]}

    @http_get("/{id}")
    def show(self, id):
        return {"user": id}

    @http_post("/login/user")
    def login(self, credentials: Annotated[dict, FromBody()]):
        email = (credentials or {}).get("email", "")
        user = _users.get(email)
        if user is None:
            return Unauthorized()
        auth.login(user)
        return NoContent()

    @http_post("/logout")
    def logout(self):
        auth.logout()
        return NoContent()

    @authorize
    @http_get("/me/profile")
    def profile(self):
        user = auth.get_current_user()
        return {"id": user.id, "email": user.email, "roles": list(user.roles)}


@authorize
@api_controller("/api/user/admin")
class AdminController:
    @http_get("/{id}")
    def show(self, id):
        if not auth.has_role("admin"):
            return Unauthorized()
        return {"admin": id}


@api_controller("/api/posts")
class PostsController:
    @http_get("")
    def index(self, author: Annotated[str, FromQuery()]):
        posts = [p for p in _posts.values() if author is None or p.author == author]
        return {"posts": posts}

    @http_get("/{id}")
    def show(self, id):
        post = _posts.get(id)
        if post is None:
            return NotFound(f"No post {id}")
        return Ok(post)

    @authorize
    @http_post("")
    def create(self, payload: Annotated[dict, FromBody()]):
        title = (payload or {}).get("title")
        if not title:
            return Json({"error": "title is required"}, status=400)
        user = auth.get_current_user()
        post = Post(id=_get_next_id(), title=title, author=user.email)
        _posts[post.id] = post
        return Ok(post)

    @authorize
    @http_delete("/{id}")
    def delete(self, id):
        _posts.pop(id, None)
        return NoContent()


app.add_controllers([UserController, AdminController, PostsController])


if __name__ == "__main__":
    app.run()

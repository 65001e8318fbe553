"""서버 렌더링 HTML 페이지 — 투어 목록, 상세, 로그인, 계정, 예약 투어.

Server-rendered HTML pages. Templates are inline strings filled with
.replace(); every user-provided value is HTML-escaped. The logged-in user
comes from the jwt cookie and is optional except on /me and /my-tours.
"""

from html import escape
from typing import Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tourbook.api.deps import get_current_user, get_optional_user
from tourbook.database import get_db
from tourbook.models.tour import Tour
from tourbook.models.user import User
from tourbook.repositories.tour_repository import tour_repository
from tourbook.services.booking_service import booking_service
from tourbook.services.user_service import user_service
from tourbook.utils.exceptions import NotFoundError

router: APIRouter = APIRouter()

# 예약 완료 안내 — Banner shown after Stripe redirects back with ?alert=booking
BOOKING_ALERT: str = (
    "Your booking was successful! Please check your email for a confirmation. "
    "If your booking doesn't show up here immediately, please come back later."
)

BASE_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Tourbook | {{TITLE}}</title>
<style>
body{font-family:system-ui,sans-serif;background:#f7f7f7;color:#777;margin:0}
header{background:#444;color:#fff;display:flex;justify-content:space-between;align-items:center;padding:16px 32px}
header a{color:#fff;text-decoration:none;margin-left:16px}
main{max-width:1100px;margin:32px auto;padding:0 16px}
.alert{background:#55c57a;color:#fff;padding:12px 16px;border-radius:6px;margin-bottom:24px}
.cards{display:grid;grid-template-columns:repeat(auto-fill,minmax(300px,1fr));gap:24px}
.card{background:#fff;border-radius:6px;box-shadow:0 4px 12px #0001;overflow:hidden}
.card img{width:100%;height:200px;object-fit:cover}
.card .body{padding:16px}
.card h3{color:#55c57a;margin:0 0 8px}
.btn{display:inline-block;background:#55c57a;color:#fff;border:none;border-radius:40px;padding:10px 24px;text-decoration:none;cursor:pointer}
label{display:block;font-size:13px;margin:12px 0 4px}
input{width:100%;max-width:360px;padding:10px;border:1px solid #ddd;border-radius:4px}
.review{background:#fff;border-radius:6px;padding:12px;margin-bottom:12px}
.error{text-align:center;padding:64px 0}
.error h2{color:#eb4d4b}
</style>
</head>
<body>
<header>
<a href="/">All tours</a>
<nav>{{NAV}}</nav>
</header>
<main>
{{ALERT}}
{{CONTENT}}
</main>
</body>
</html>"""

TOUR_CARD_HTML = """<div class="card">
<img src="/img/tours/{{IMAGE}}" alt="{{NAME}}">
<div class="body">
<h3>{{NAME}}</h3>
<p>{{DIFFICULTY}} {{DURATION}}-day tour</p>
<p>{{SUMMARY}}</p>
<p><strong>${{PRICE}}</strong> per person &middot; {{RATING}} rating ({{QUANTITY}})</p>
<a class="btn" href="/tour/{{SLUG}}">Details</a>
</div>
</div>"""

TOUR_DETAIL_HTML = """<h1>{{NAME}} tour</h1>
<img src="/img/tours/{{IMAGE}}" alt="{{NAME}}" style="width:100%;max-height:400px;object-fit:cover;border-radius:6px">
<p>{{DURATION}} days &middot; {{DIFFICULTY}} &middot; up to {{GROUP}} people &middot; {{RATING}} / 5</p>
<p>{{DESCRIPTION}}</p>
<h2>Your tour guides</h2>
<ul>{{GUIDES}}</ul>
<h2>Reviews</h2>
{{REVIEWS}}
{{BOOK}}"""

BOOK_BUTTON_HTML = """<button class="btn" id="book-tour" data-tour-id="{{TOUR_ID}}">Book tour now!</button>
<script>
document.getElementById('book-tour').addEventListener('click', async (e) => {
  e.target.textContent = 'Processing...';
  const res = await fetch('/api/v1/bookings/checkout-session/' + e.target.dataset.tourId);
  const body = await res.json();
  if (res.ok) { window.location.assign(body.session.url); }
  else { e.target.textContent = body.message || 'Something went wrong'; }
});
</script>"""

LOGIN_HTML = """<h2>Log into your account</h2>
<form id="login-form">
<label for="email">Email address</label>
<input id="email" type="email" required placeholder="you@example.com">
<label for="password">Password</label>
<input id="password" type="password" required minlength="8">
<p><button class="btn" type="submit">Login</button></p>
<p id="login-error"></p>
</form>
<script>
document.getElementById('login-form').addEventListener('submit', async (e) => {
  e.preventDefault();
  const res = await fetch('/api/v1/users/login', {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({email: document.getElementById('email').value,
                          password: document.getElementById('password').value})
  });
  if (res.ok) { window.location.assign('/'); }
  else { document.getElementById('login-error').textContent = (await res.json()).message; }
});
</script>"""

ACCOUNT_HTML = """<h2>Your account settings</h2>
<img src="/img/users/{{PHOTO}}" alt="{{NAME}}" style="width:80px;height:80px;border-radius:50%">
<form method="post" action="/submit-user-data">
<label for="name">Name</label>
<input id="name" name="name" value="{{NAME}}" required>
<label for="email">Email address</label>
<input id="email" name="email" type="email" value="{{EMAIL}}" required>
<p><button class="btn" type="submit">Save settings</button></p>
</form>"""

ERROR_HTML = """<div class="error">
<h2>Uh oh! Something went wrong!</h2>
<p>{{MESSAGE}}</p>
</div>"""


def _render(
    title: str,
    content: str,
    user: User | None = None,
    alert: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    if user is not None:
        nav = f'<a href="/my-tours">My bookings</a><a href="/me">{escape(user.name.split(" ")[0])}</a>'
    else:
        nav = '<a href="/login">Log in</a>'
    alert_html = f'<div class="alert">{escape(alert)}</div>' if alert else ""
    html = (
        BASE_HTML.replace("{{TITLE}}", escape(title))
        .replace("{{NAV}}", nav)
        .replace("{{ALERT}}", alert_html)
        .replace("{{CONTENT}}", content)
    )
    return HTMLResponse(html, status_code=status_code)


def render_error(message: str, status_code: int) -> HTMLResponse:
    """에러 페이지 — Used by the exception handlers for non-API paths."""
    return _render(
        "Something went wrong!",
        ERROR_HTML.replace("{{MESSAGE}}", escape(message)),
        status_code=status_code,
    )


def _tour_card(tour: Tour) -> str:
    return (
        TOUR_CARD_HTML.replace("{{IMAGE}}", escape(tour.image_cover))
        .replace("{{NAME}}", escape(tour.name))
        .replace("{{DIFFICULTY}}", escape(tour.difficulty.capitalize()))
        .replace("{{DURATION}}", str(tour.duration))
        .replace("{{SUMMARY}}", escape(tour.summary))
        .replace("{{PRICE}}", f"{tour.price:g}")
        .replace("{{RATING}}", f"{tour.ratings_average:g}")
        .replace("{{QUANTITY}}", str(tour.ratings_quantity))
        .replace("{{SLUG}}", escape(tour.slug))
    )


def _tour_cards(tours: list[Tour]) -> str:
    return '<div class="cards">' + "".join(_tour_card(t) for t in tours) + "</div>"


@router.get("/", response_class=HTMLResponse)
async def overview(
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User | None, Depends(get_optional_user)],
    alert: str | None = None,
) -> HTMLResponse:
    """투어 목록 페이지 — All tours overview."""
    tours = await tour_repository.get_all(db)
    return _render(
        "All Tours",
        _tour_cards(tours),
        user,
        alert=BOOKING_ALERT if alert == "booking" else "",
    )


@router.get("/tour/{slug}", response_class=HTMLResponse)
async def tour_detail(
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User | None, Depends(get_optional_user)],
) -> HTMLResponse:
    """투어 상세 페이지 — 가이드, 리뷰, 예약 버튼.

    Tour page with guides and reviews. Logged-in visitors get a booking
    button that opens Stripe Checkout.

    Raises:
        NotFoundError: 해당 슬러그의 투어 없음 (Unknown slug)
    """
    tour: Tour | None = await tour_repository.get_by_slug(db, slug)
    if tour is None:
        raise NotFoundError("There is no tour with that name.")

    guides = "".join(
        f"<li>{escape(g.role.replace('-', ' ').upper())}: {escape(g.name)}</li>" for g in tour.guides
    )
    reviews = "".join(
        f'<div class="review"><strong>{escape(r.user.name if r.user else "Former user")}</strong>'
        f" &middot; {r.rating}/5<p>{escape(r.review)}</p></div>"
        for r in tour.reviews
    ) or "<p>No reviews yet.</p>"
    if user is not None:
        book = BOOK_BUTTON_HTML.replace("{{TOUR_ID}}", str(tour.id))
    else:
        book = '<a class="btn" href="/login">Log in to book tour</a>'

    content = (
        TOUR_DETAIL_HTML.replace("{{NAME}}", escape(tour.name))
        .replace("{{IMAGE}}", escape(tour.image_cover))
        .replace("{{DURATION}}", str(tour.duration))
        .replace("{{DIFFICULTY}}", escape(tour.difficulty))
        .replace("{{GROUP}}", str(tour.max_group_size))
        .replace("{{RATING}}", f"{tour.ratings_average:g}")
        .replace("{{DESCRIPTION}}", escape(tour.description or tour.summary))
        .replace("{{GUIDES}}", guides)
        .replace("{{REVIEWS}}", reviews)
        .replace("{{BOOK}}", book)
    )
    return _render(f"{tour.name} Tour", content, user)


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> HTMLResponse:
    return _render("Log into your account", LOGIN_HTML, user)


def _account_page(user: User, alert: str = "") -> HTMLResponse:
    content = (
        ACCOUNT_HTML.replace("{{PHOTO}}", escape(user.photo))
        .replace("{{NAME}}", escape(user.name))
        .replace("{{EMAIL}}", escape(user.email))
    )
    return _render("Your account", content, user, alert=alert)


@router.get("/me", response_class=HTMLResponse)
async def account(
    current_user: Annotated[User, Depends(get_current_user)],
) -> HTMLResponse:
    return _account_page(current_user)


@router.get("/my-tours", response_class=HTMLResponse)
async def my_tours(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    alert: str | None = None,
) -> HTMLResponse:
    """예약한 투어 페이지 — Tours the user has booked."""
    tours = await booking_service.get_booked_tours(db, current_user)
    content = _tour_cards(tours) if tours else "<p>You have not booked any tours yet.</p>"
    return _render(
        "My Tours",
        content,
        current_user,
        alert=BOOKING_ALERT if alert == "booking" else "",
    )


@router.post("/submit-user-data", response_class=HTMLResponse)
async def submit_user_data(
    name: Annotated[str, Form()],
    email: Annotated[str, Form()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> HTMLResponse:
    """계정 폼 제출 — HTML form update of name and email."""
    await user_service.update_me(db, current_user, {"name": name, "email": email})
    await db.commit()
    return _account_page(current_user, alert="Your data was updated successfully.")

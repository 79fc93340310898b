"""Newsroom - Streamlit Frontend."""

import streamlit as st
from components.api_client import APIClient

# Page configuration
st.set_page_config(
    page_title="Newsroom",
    page_icon="📰",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Initialize API client
if "api_client" not in st.session_state:
    st.session_state.api_client = APIClient()

PASSWORD_RULES = """
**Password Requirements:**
- At least 8 characters
- Upper and lower case letters
- A digit and a special character (!@#$%^&*()_+-=[]{}|;:,.<>?)
"""


def start_session(result: dict, greeting: str):
    """Keep the issued token and user, then reload into the signed-in app."""
    st.session_state.token = result["access_token"]
    st.session_state.user = result["user"]
    st.success(f"{greeting}, {result['user']['username']}!")
    st.rerun()


def clear_session():
    for key in list(st.session_state.keys()):
        del st.session_state[key]


def open_article(article_id: int):
    """Remember the article to show and jump to the article page."""
    st.session_state.selected_article_id = article_id
    st.session_state.viewed_article_id = None
    st.switch_page("pages/03_article.py")


def login_form(api_client: APIClient):
    with st.form("login_form"):
        username = st.text_input("Username or Email")
        password = st.text_input("Password", type="password")

        if st.form_submit_button("Login", use_container_width=True):
            if not username or not password:
                st.error("Please enter both username and password")
                return

            with st.spinner("Logging in..."):
                success, result = api_client.login(username, password)
            if success:
                start_session(result, "Welcome back")
            st.error(f"Login failed: {result}")


def register_form(api_client: APIClient):
    with st.form("register_form"):
        username = st.text_input("Username", placeholder="3-50 characters, starting with a letter")
        email = st.text_input("Email (Optional)", placeholder="your.email@example.com")
        description = st.text_area("About you (Optional)", placeholder="Reporter, editor, reader...")
        password = st.text_input("Password", type="password")
        password_confirm = st.text_input("Confirm Password", type="password")
        st.info(PASSWORD_RULES)

        if st.form_submit_button("Create Account", use_container_width=True):
            if not all([username, password, password_confirm]):
                st.error("Please fill in all required fields")
            elif password != password_confirm:
                st.error("Passwords do not match")
            else:
                with st.spinner("Creating account..."):
                    success, result = api_client.register(
                        username=username,
                        password=password,
                        email=email,
                        description=description
                    )
                if success:
                    start_session(result, "Account created! Welcome")
                st.error(f"Registration failed: {result}")


def supabase_form(api_client: APIClient):
    st.caption("Already signed in through Supabase? Paste the access token to continue.")
    with st.form("supabase_form"):
        access_token = st.text_input("Supabase access token", type="password")
        if st.form_submit_button("Continue", use_container_width=True) and access_token:
            success, result = api_client.supabase_login(access_token)
            if success:
                start_session(result, "Welcome")
            st.error(f"Sign-in failed: {result}")


def show_landing_page():
    """Sign-in tabs above the public feed."""
    api_client = st.session_state.api_client
    st.title("📰 Newsroom")

    if not api_client.health_check():
        st.error(f"⚠️ Cannot reach the Newsroom API at {api_client.base_url}")
        st.info("To start the backend: `cd backend && python -m uvicorn newsroom.main:app --reload`")
        return

    _, center, _ = st.columns([1, 2, 1])
    with center:
        login_tab, register_tab, supabase_tab = st.tabs(["🔐 Login", "📝 Register", "🔑 Supabase"])
        with login_tab:
            login_form(api_client)
        with register_tab:
            register_form(api_client)
        with supabase_tab:
            supabase_form(api_client)

    st.markdown("---")
    st.subheader("Latest stories")
    show_feed()


def show_feed():
    """Published articles with category and location filters."""
    api_client = st.session_state.api_client

    _, categories = api_client.get_categories()
    _, locations = api_client.get_locations()

    col_cat, col_loc = st.columns(2)
    with col_cat:
        category = st.selectbox("Category", ["All"] + (categories or []))
    with col_loc:
        location = st.selectbox("Location", ["All"] + (locations or []))

    with st.spinner("Loading articles..."):
        success, articles = api_client.list_articles(
            category=None if category == "All" else category,
            location=None if location == "All" else location
        )

    if not success:
        st.error(f"Failed to load articles: {articles}")
        return

    if not articles:
        st.info("📭 No articles yet.")
        return

    for article in articles:
        with st.container(border=True):
            st.markdown(f"### {article['title']}")
            st.caption(
                f"{article.get('channel_name') or 'Unknown channel'} · "
                f"by {article.get('author_username') or 'unknown'} · "
                f"{article['created_at'][:10]} · {article['category']}"
                + (f" · {article['location']}" if article.get('location') else "")
            )
            if article.get("summary"):
                st.write(article["summary"])

            col1, col2, col3 = st.columns([1, 1, 4])
            col1.write(f"👍 {article['likes']}  👎 {article['dislikes']}")
            col2.write(f"💬 {article['comment_count']}  👁️ {article['view_count']}")
            if col3.button("Read", key=f"read_{article['id']}"):
                open_article(article["id"])


def show_home():
    user = st.session_state.user
    with st.sidebar:
        st.title("📰 Newsroom")
        st.write(f"👤 **{user['username']}**")
        if user.get("email"):
            st.write(f"📧 {user['email']}")

        st.markdown("---")
        if st.button("🚪 Logout", use_container_width=True):
            st.session_state.api_client.logout()
            clear_session()
            st.rerun()

    st.title("🏠 Home")
    show_feed()


def main():
    if "token" not in st.session_state or "user" not in st.session_state:
        show_landing_page()
        return

    api_client = st.session_state.api_client
    api_client.token = st.session_state.token
    if api_client.verify_token():
        show_home()
    else:
        # Session expired or revoked
        clear_session()
        st.rerun()


if __name__ == "__main__":
    main()

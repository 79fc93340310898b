"""Channels Page - Browse, Subscribe and Create."""

import streamlit as st

st.set_page_config(page_title="Channels", page_icon="📺", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

# Initialize API client
api_client = st.session_state.api_client
current_user = st.session_state.user

st.title("📺 Channels")

ORDERINGS = {
    "Newest": "created_at",
    "Most subscribers": "subscriber_count",
    "Most articles": "article_count",
}


def show_channel(channel: dict):
    """Channel card with subscribe controls and its articles."""
    with st.expander(
        f"{channel['name']} · {channel['subscriber_count']} subscribers · {channel['article_count']} articles",
        expanded=False
    ):
        if channel.get("banner_image"):
            st.image(channel["banner_image"], use_container_width=True)

        col1, col2 = st.columns([3, 1])

        with col1:
            if channel.get("description"):
                st.write(channel["description"])
            details = [d for d in (channel.get("category"), channel.get("location")) if d]
            if details:
                st.caption(" · ".join(details))

        with col2:
            if channel["user_id"] == current_user["id"]:
                st.caption("Your channel")
            else:
                _, status = api_client.get_subscription_status(channel["id"])
                if status and status.get("subscribed"):
                    if st.button("Unsubscribe", key=f"unsub_{channel['id']}"):
                        ok, msg = api_client.unsubscribe(channel["id"])
                        if ok:
                            st.rerun()
                        st.error(msg)
                else:
                    if st.button("Subscribe", key=f"sub_{channel['id']}"):
                        ok, msg = api_client.subscribe(channel["id"])
                        if ok:
                            st.rerun()
                        st.error(msg)

        success, articles = api_client.list_channel_articles(channel["id"])
        if success and articles:
            for article in articles:
                label = article["title"] if article["status"] == "published" else f"{article['title']} (draft)"
                if st.button(label, key=f"open_{channel['id']}_{article['id']}"):
                    st.session_state.selected_article_id = article["id"]
                    st.session_state.viewed_article_id = None
                    st.switch_page("pages/03_article.py")
        elif success:
            st.info("No articles in this channel yet.")


tab1, tab2 = st.tabs(["📋 Browse", "➕ Create Channel"])

with tab1:
    ordering = st.selectbox("Order by", list(ORDERINGS))

    with st.spinner("Loading channels..."):
        success, channels = api_client.list_channels(order_by=ORDERINGS[ordering])

    if success:
        if not channels:
            st.info("📭 No channels yet. Create the first one!")
        for channel in channels:
            show_channel(channel)
    else:
        st.error(f"Failed to load channels: {channels}")

with tab2:
    st.subheader("Create a New Channel")

    with st.form("create_channel"):
        name = st.text_input("Name", placeholder="e.g., Springfield Gazette")
        description = st.text_area("Description")
        col1, col2 = st.columns(2)
        with col1:
            category = st.text_input("Category", placeholder="e.g., local")
        with col2:
            location = st.text_input("Location", placeholder="e.g., Springfield")
        banner_image = st.text_input("Banner image URL")
        profile_image = st.text_input("Profile image URL")

        if st.form_submit_button("Create Channel", use_container_width=True):
            if not name:
                st.error("Please give the channel a name")
            else:
                fields = {
                    "description": description,
                    "category": category,
                    "location": location,
                    "banner_image": banner_image,
                    "profile_image": profile_image,
                }
                success, result = api_client.create_channel(name, **{k: v for k, v in fields.items() if v})
                if success:
                    st.success(f"Channel '{result['name']}' created!")
                    st.rerun()
                else:
                    st.error(f"Failed to create channel: {result}")

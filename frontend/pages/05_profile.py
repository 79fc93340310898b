"""Profile Page - About, Subscriptions and Own Content."""

import streamlit as st

st.set_page_config(page_title="Profile", page_icon="👤", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

# Initialize API client
api_client = st.session_state.api_client
user = st.session_state.user

st.title(f"👤 {user['username']}")
st.caption(f"Member since {user['created_at'][:10]}")

tab1, tab2, tab3, tab4 = st.tabs(["📝 About", "⭐ Subscriptions", "📺 My Channels", "📰 My Articles"])

with tab1:
    with st.form("profile_form"):
        description = st.text_area("Description", value=user.get("description") or "")
        email = st.text_input("Email", value=user.get("email") or "")

        if st.form_submit_button("Save Profile"):
            success, result = api_client.update_profile(user["id"], description=description, email=email)
            if success:
                st.session_state.user = result
                st.success("Profile updated!")
                st.rerun()
            else:
                st.error(f"Update failed: {result}")

with tab2:
    success, channels = api_client.get_my_subscriptions()
    if not success:
        st.error(f"Failed to load subscriptions: {channels}")
    elif not channels:
        st.info("You are not subscribed to any channel yet.")
    else:
        for channel in channels:
            col1, col2 = st.columns([4, 1])
            col1.write(f"**{channel['name']}** · {channel['subscriber_count']} subscribers")
            if col2.button("Unsubscribe", key=f"unsub_{channel['id']}"):
                ok, msg = api_client.unsubscribe(channel["id"])
                if ok:
                    st.rerun()
                st.error(msg)

with tab3:
    success, channels = api_client.get_my_channels()
    if not success:
        st.error(f"Failed to load channels: {channels}")
    elif not channels:
        st.info("You don't own any channels yet.")
    else:
        for channel in channels:
            with st.expander(f"{channel['name']} · {channel['article_count']} articles"):
                with st.form(f"edit_channel_{channel['id']}"):
                    name = st.text_input("Name", value=channel["name"])
                    channel_description = st.text_area("Description", value=channel.get("description") or "")
                    if st.form_submit_button("Save"):
                        ok, msg = api_client.update_channel(
                            channel["id"], name=name, description=channel_description
                        )
                        if ok:
                            st.rerun()
                        st.error(msg)

                if st.button("🗑️ Delete channel", key=f"delete_{channel['id']}"):
                    if st.session_state.get(f"confirm_delete_{channel['id']}", False):
                        ok, msg = api_client.delete_channel(channel["id"])
                        if ok:
                            st.success("Channel deleted")
                            st.rerun()
                        st.error(f"Delete failed: {msg}")
                    else:
                        st.session_state[f"confirm_delete_{channel['id']}"] = True
                        st.warning("Click again to confirm. All articles in the channel will be deleted.")

with tab4:
    success, articles = api_client.get_my_articles()
    if not success:
        st.error(f"Failed to load articles: {articles}")
    elif not articles:
        st.info("You haven't written anything yet.")
    else:
        for article in articles:
            col1, col2, col3 = st.columns([4, 1, 1])
            col1.write(f"**{article['title']}** · {article['status']} · 👁️ {article['view_count']}")
            if col2.button("Open", key=f"open_{article['id']}"):
                st.session_state.selected_article_id = article["id"]
                st.session_state.viewed_article_id = None
                st.switch_page("pages/03_article.py")
            if col3.button("Edit", key=f"edit_{article['id']}"):
                st.session_state.editing_article_id = article["id"]
                st.switch_page("pages/04_write.py")

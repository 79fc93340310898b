"""Article Editor Page - Write, Edit and Publish."""

import streamlit as st

st.set_page_config(page_title="Write", page_icon="✍️", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

# Initialize API client
api_client = st.session_state.api_client

success, channels = api_client.get_my_channels()
if not success:
    st.error(f"Failed to load your channels: {channels}")
    st.stop()

if not channels:
    st.info("You need a channel before you can publish. Create one on the Channels page.")
    st.stop()

channel_names = {c["id"]: c["name"] for c in channels}

editing_id = st.session_state.get("editing_article_id")
existing = None
if editing_id is not None:
    ok, existing = api_client.get_article(editing_id, count_view=False)
    if not ok:
        st.error(f"⚠️ {existing}")
        st.session_state.editing_article_id = None
        st.stop()

st.title("✍️ Edit Article" if existing else "✍️ Write an Article")

if existing:
    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        st.caption(f"Status: **{existing['status']}**")
    with col2:
        label = "Unpublish (make draft)" if existing["status"] == "published" else "Publish now"
        if st.button(label, use_container_width=True):
            ok, result = api_client.toggle_article_status(existing["id"])
            if ok:
                st.success(f"Article is now {result['status']}")
                st.rerun()
            st.error(result)
    with col3:
        if st.button("🗑️ Delete", use_container_width=True):
            if st.session_state.get("confirm_delete_article"):
                ok, msg = api_client.delete_article(existing["id"])
                if ok:
                    st.session_state.editing_article_id = None
                    st.session_state.confirm_delete_article = False
                    st.success("Article deleted")
                    st.rerun()
                st.error(f"Delete failed: {msg}")
            else:
                st.session_state.confirm_delete_article = True
                st.warning("Click again to confirm deletion")

with st.form("article_editor"):
    channel_ids = list(channel_names)
    default_channel = channel_ids.index(existing["channel_id"]) if existing and existing["channel_id"] in channel_ids else 0
    channel_id = st.selectbox(
        "Channel",
        channel_ids,
        index=default_channel,
        format_func=lambda cid: channel_names[cid]
    )
    title = st.text_input("Title", value=existing["title"] if existing else "")
    summary = st.text_input("Summary", value=(existing or {}).get("summary") or "")

    col1, col2 = st.columns(2)
    with col1:
        category = st.text_input("Category", value=existing["category"] if existing else "")
    with col2:
        location = st.text_input("Location", value=(existing or {}).get("location") or "")

    content = st.text_area("Content (Markdown)", value=existing["content"] if existing else "", height=400)

    if not existing:
        publish = st.checkbox("Publish immediately", value=True, help="Unchecked saves a draft only you can see")

    submitted = st.form_submit_button("Save", use_container_width=True)

if submitted:
    if not all([title, content, category]):
        st.error("Title, content and category are required")
    elif existing:
        ok, result = api_client.update_article(
            existing["id"],
            title=title,
            content=content,
            summary=summary or None,
            category=category,
            location=location or None,
            channel_id=channel_id
        )
        if ok:
            st.success("Article updated!")
        else:
            st.error(f"Update failed: {result}")
    else:
        ok, result = api_client.create_article(
            title=title,
            content=content,
            channel_id=channel_id,
            category=category,
            summary=summary,
            location=location,
            published=publish
        )
        if ok:
            st.session_state.editing_article_id = result["id"]
            st.success(f"Article saved as {result['status']}!")
            st.rerun()
        else:
            st.error(f"Failed to save article: {result}")

if existing and st.button("➕ Start a new article"):
    st.session_state.editing_article_id = None
    st.rerun()

"""Article Page - Read, React and Comment."""

import streamlit as st

st.set_page_config(page_title="Article", page_icon="📄", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

# Initialize API client
api_client = st.session_state.api_client
current_user = st.session_state.user

article_id = st.session_state.get("selected_article_id")
if article_id is None:
    st.info("Pick an article from the home feed or a channel.")
    st.stop()

# Reruns after reacting or commenting re-read the article without counting another view
first_load = st.session_state.get("viewed_article_id") != article_id
success, article = api_client.get_article(article_id, count_view=first_load)
if not success:
    st.error(f"⚠️ {article}")
    st.stop()
st.session_state.viewed_article_id = article_id

is_author = article["user_id"] == current_user["id"]

st.title(article["title"])
st.caption(
    f"{article.get('channel_name') or 'Unknown channel'} · by {article.get('author_username') or 'unknown'} · "
    f"{article['created_at'][:10]} · {article['category']}"
    + (f" · {article['location']}" if article.get("location") else "")
    + (f" · edited {article['last_edited'][:10]}" if article.get("last_edited") else "")
)

if article["status"] == "draft":
    st.warning("📝 Draft - only you can see this article")

if article.get("summary"):
    st.markdown(f"**{article['summary']}**")

st.markdown(article["content"])
st.markdown("---")

# Reactions
col1, col2, col3, col4 = st.columns([1, 1, 1, 3])
liked = article.get("user_reaction")

with col1:
    if st.button(f"👍 {article['likes']}", type="primary" if liked is True else "secondary"):
        if liked is True:
            api_client.remove_reaction(article_id)
        else:
            api_client.react(article_id, True)
        st.rerun()

with col2:
    if st.button(f"👎 {article['dislikes']}", type="primary" if liked is False else "secondary"):
        if liked is False:
            api_client.remove_reaction(article_id)
        else:
            api_client.react(article_id, False)
        st.rerun()

with col3:
    st.write(f"👁️ {article['view_count']} views")

with col4:
    if is_author and st.button("✏️ Edit article"):
        st.session_state.editing_article_id = article_id
        st.switch_page("pages/04_write.py")

st.markdown("---")

# Comments
st.subheader(f"💬 Comments ({article['comment_count']})")


def show_comment(comment: dict, depth: int = 0):
    """Render a comment and its replies, indented by depth."""
    indent = min(depth, 4)
    _, body = st.columns([indent + 0.01, 12 - indent]) if indent else (None, st.container())

    with body:
        st.markdown(f"**{comment.get('username') or 'unknown'}** · {comment['created_at'][:16].replace('T', ' ')}")
        st.write(comment["content"])

        col_reply, col_delete = st.columns([1, 5])
        with col_reply:
            if st.button("Reply", key=f"reply_{comment['id']}"):
                st.session_state.reply_to = comment["id"]
        with col_delete:
            if comment["user_id"] == current_user["id"] or is_author:
                if st.button("Delete", key=f"delete_comment_{comment['id']}"):
                    ok, msg = api_client.delete_comment(comment["id"])
                    if ok:
                        st.rerun()
                    st.error(msg)

        if st.session_state.get("reply_to") == comment["id"]:
            with st.form(f"reply_form_{comment['id']}"):
                reply = st.text_area("Your reply")
                if st.form_submit_button("Post reply") and reply:
                    ok, msg = api_client.add_comment(article_id, reply, parent_id=comment["id"])
                    if ok:
                        st.session_state.reply_to = None
                        st.rerun()
                    st.error(msg)

    for child in comment["replies"]:
        show_comment(child, depth + 1)


success, tree = api_client.get_comment_tree(article_id)
if success:
    for comment in tree:
        show_comment(comment)
else:
    st.error(f"Failed to load comments: {tree}")

with st.form("new_comment", clear_on_submit=True):
    content = st.text_area("Add a comment")
    if st.form_submit_button("Post comment"):
        if not content:
            st.error("Comment cannot be empty")
        else:
            ok, msg = api_client.add_comment(article_id, content)
            if ok:
                st.rerun()
            st.error(msg)

# Private notes
with st.expander("🗒️ My private notes on this article"):
    _, notes = api_client.list_notes()
    for note in [n for n in (notes or []) if n.get("article_id") == article_id]:
        st.write(f"- {note['content']}")

    with st.form("new_note", clear_on_submit=True):
        note_text = st.text_input("New note")
        if st.form_submit_button("Save note") and note_text:
            ok, msg = api_client.create_note(note_text, article_id=article_id)
            if ok:
                st.rerun()
            st.error(msg)

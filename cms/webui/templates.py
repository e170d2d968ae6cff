"""Static HTML templates for the admin pages (served at /admin and /admin/blogs)."""

_STYLE = r"""
  <style>
    :root {
      --bg: #f5f6fa;
      --panel: #ffffff;
      --text: #111827;
      --muted: #6b7280;
      --accent: #2563eb;
      --danger: #dc2626;
      --success: #059669;
      --border: #e5e7eb;
      --card-radius: 12px;
      --font: "Inter", "Segoe UI", system-ui, -apple-system, sans-serif;
    }
    * { box-sizing: border-box; }
    body { margin: 0; font-family: var(--font); background: var(--bg); color: var(--text); }
    a { color: var(--accent); text-decoration: none; }
    .page { max-width: 1100px; margin: 0 auto; padding: 24px 20px 48px; }
    header { display: flex; align-items: center; justify-content: space-between; gap: 12px; margin-bottom: 18px; }
    header h1 { margin: 0; font-size: 20px; }
    nav { display: flex; gap: 8px; align-items: center; }
    nav a, button {
      padding: 8px 12px; border: 1px solid var(--border); border-radius: 10px;
      background: var(--panel); color: var(--text); font-size: 14px; cursor: pointer;
    }
    button.primary { background: var(--accent); border-color: var(--accent); color: #fff; }
    button.danger { color: var(--danger); border-color: rgba(220,38,38,0.3); }
    section { background: var(--panel); border: 1px solid var(--border); border-radius: var(--card-radius); padding: 18px; margin-bottom: 16px; }
    section h2 { margin: 0 0 12px; font-size: 17px; }
    form { display: grid; gap: 10px; grid-template-columns: repeat(auto-fit, minmax(220px, 1fr)); }
    label { display: flex; flex-direction: column; gap: 6px; font-size: 13px; color: var(--muted); }
    label.wide { grid-column: 1 / -1; }
    input, select, textarea { border: 1px solid var(--border); border-radius: 10px; padding: 9px 11px; font-size: 14px; font-family: inherit; }
    textarea { min-height: 110px; }
    .actions { grid-column: 1 / -1; display: flex; gap: 8px; align-items: center; }
    .list-item { display: flex; justify-content: space-between; gap: 12px; padding: 14px 0; border-bottom: 1px solid var(--border); }
    .list-item:last-child { border-bottom: none; }
    .list-item h3 { margin: 0 0 4px; font-size: 15px; }
    .list-item p { margin: 0; color: var(--muted); font-size: 13px; }
    .pill { display: inline-block; padding: 2px 8px; border-radius: 999px; background: #eef2ff; font-size: 12px; margin-left: 6px; }
    .thumbs { display: flex; gap: 8px; flex-wrap: wrap; grid-column: 1 / -1; }
    .thumb { position: relative; }
    .thumb img { width: 96px; height: 96px; object-fit: cover; border-radius: 8px; border: 1px solid var(--border); }
    .thumb.removed img { opacity: 0.3; }
    .thumb button { position: absolute; top: 2px; right: 2px; padding: 0 6px; border-radius: 50%; background: var(--danger); color: #fff; border: none; }
    #status { font-size: 13px; padding: 6px 10px; border-radius: 8px; }
    #status.success { color: var(--success); background: #ecfdf5; }
    #status.error { color: var(--danger); background: #fef2f2; }
    #status.loading { color: var(--muted); background: #f3f4f6; }
    .hidden { display: none; }
    .muted { color: var(--muted); }
  </style>
"""

_LOGIN_SECTION = r"""
    <section id="login-panel" class="hidden">
      <h2>Sign in</h2>
      <form id="login-form">
        <label>Username<input name="username" autocomplete="username" required /></label>
        <label>Password<input name="password" type="password" autocomplete="current-password" required /></label>
        <div class="actions"><button class="primary" type="submit">Sign in</button></div>
      </form>
    </section>
"""

# Shared client: token storage, fetch wrapper, status indicator and the
# explicit form state object {mode, targetId}.
_COMMON_SCRIPT = r"""
    const TOKEN_KEY = "admin_token";
    const api = {
      token() { return localStorage.getItem(TOKEN_KEY); },
      headers(extra = {}) {
        const token = this.token();
        return token ? { ...extra, Authorization: `Bearer ${token}` } : extra;
      },
      async request(url, opts = {}) {
        const res = await fetch(url, opts);
        const text = await res.text();
        let data = {};
        try { data = text ? JSON.parse(text) : {}; } catch (_err) { data = { error: text }; }
        if (!res.ok) {
          if (res.status === 401 || res.status === 403) showLogin(true);
          const msg = [data.error || data.message, data.detail].filter(Boolean).join(": ");
          throw new Error(msg || ("Request failed: " + res.status));
        }
        return data;
      },
      json(url, method, body) {
        return this.request(url, {
          method,
          headers: this.headers({ "Content-Type": "application/json" }),
          body: body === undefined ? undefined : JSON.stringify(body),
        });
      },
      async upload(files) {
        if (!files.length) return [];
        const form = new FormData();
        files.forEach((f) => form.append("images", f, f.name));
        const data = await this.request("/uploads", { method: "POST", headers: this.headers(), body: form });
        return data.urls || [];
      },
    };

    function setStatus(msg, kind = "info") {
      const el = document.getElementById("status");
      el.className = kind;
      el.textContent = msg || "";
    }

    function escapeHtml(value) {
      return String(value ?? "").replace(/[&<>"']/g, (c) => ({ "&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#39;" }[c]));
    }

    function showLogin(show) {
      document.getElementById("login-panel").classList.toggle("hidden", !show);
      document.getElementById("logout").classList.toggle("hidden", show);
    }

    function newFormState() {
      return { mode: "create", targetId: null, existingImages: [], removed: new Set() };
    }

    document.getElementById("login-form").addEventListener("submit", async (e) => {
      e.preventDefault();
      const body = Object.fromEntries(new FormData(e.target).entries());
      try {
        const data = await api.json("/auth/login", "POST", body);
        localStorage.setItem(TOKEN_KEY, data.token);
        e.target.reset();
        showLogin(false);
        setStatus("Signed in", "success");
      } catch (err) {
        setStatus(err.message, "error");
      }
    });

    document.getElementById("logout").addEventListener("click", async () => {
      await api.json("/auth/logout", "POST").catch(() => {});
      localStorage.removeItem(TOKEN_KEY);
      showLogin(true);
    });

    async function checkSession() {
      if (!api.token()) { showLogin(true); return; }
      try {
        await api.request("/auth/verify", { headers: api.headers() });
        showLogin(false);
      } catch (_err) {
        localStorage.removeItem(TOKEN_KEY);
        showLogin(true);
      }
    }
"""

_EVENTS_BODY = r"""
    <section>
      <h2 id="form-title">New Event</h2>
      <form id="event-form">
        <label>Heading<input id="heading" name="Heading" required /></label>
        <label>Date<input id="date" name="date" /></label>
        <label>Form link<input id="formLink" name="formLink" /></label>
        <label>QR link<input id="qrLink" name="qrLink" /></label>
        <label>Layout
          <select id="reverse" name="reverse">
            <option value="false">Normal</option>
            <option value="true">Reverse</option>
          </select>
        </label>
        <label>Images<input id="images" type="file" accept="image/*" multiple /></label>
        <label class="wide">Description<textarea id="description" name="Description" required></textarea></label>
        <div id="existing-images" class="thumbs"></div>
        <div id="preview" class="thumbs"></div>
        <div class="actions">
          <button class="primary" type="submit" id="submit-btn">Create Event</button>
          <button type="button" id="cancel-edit" class="hidden">Cancel edit</button>
          <span id="status"></span>
        </div>
      </form>
    </section>
    <section>
      <h2>Events <button type="button" id="refresh">Refresh</button></h2>
      <div id="events"></div>
      <p id="empty-state" class="muted hidden">No events yet.</p>
    </section>
"""

_EVENTS_SCRIPT = r"""
    let form = newFormState();
    const el = (id) => document.getElementById(id);

    el("images").addEventListener("change", (e) => {
      el("preview").innerHTML = "";
      Array.from(e.target.files || []).forEach((file) => {
        const div = document.createElement("div");
        div.className = "thumb";
        div.innerHTML = `<img src="${URL.createObjectURL(file)}" alt="" />`;
        el("preview").appendChild(div);
      });
    });

    function renderExistingImages() {
      const box = el("existing-images");
      box.innerHTML = "";
      form.existingImages.forEach((url) => {
        const div = document.createElement("div");
        div.className = "thumb" + (form.removed.has(url) ? " removed" : "");
        div.innerHTML = `<img src="${escapeHtml(url)}" alt="" /><button type="button" title="Remove image">&times;</button>`;
        div.querySelector("button").onclick = () => {
          if (form.removed.has(url)) form.removed.delete(url); else form.removed.add(url);
          renderExistingImages();
        };
        box.appendChild(div);
      });
    }

    function resetForm() {
      form = newFormState();
      el("event-form").reset();
      el("preview").innerHTML = "";
      renderExistingImages();
      el("form-title").textContent = "New Event";
      el("submit-btn").textContent = "Create Event";
      el("cancel-edit").classList.add("hidden");
    }

    function beginEdit(evt) {
      form = { mode: "edit", targetId: evt.id, existingImages: [...(evt.images || [])], removed: new Set() };
      el("heading").value = evt.Heading || "";
      el("description").value = typeof evt.Description === "string" ? evt.Description : JSON.stringify(evt.Description || "");
      el("date").value = evt.date || "";
      el("formLink").value = evt.formLink || "";
      el("qrLink").value = evt.qrLink || "";
      el("reverse").value = evt.reverse ? "true" : "false";
      el("images").value = "";
      el("preview").innerHTML = "";
      renderExistingImages();
      el("form-title").textContent = `Edit Event #${evt.eventNumber ?? ""}`;
      el("submit-btn").textContent = "Update Event";
      el("cancel-edit").classList.remove("hidden");
      el("event-form").scrollIntoView({ behavior: "smooth" });
    }

    function renderEvents(list) {
      const box = el("events");
      box.innerHTML = "";
      el("empty-state").classList.toggle("hidden", list.length > 0);
      list.forEach((evt) => {
        const desc = typeof evt.Description === "string" ? evt.Description : JSON.stringify(evt.Description || "");
        const div = document.createElement("div");
        div.className = "list-item";
        div.innerHTML = `
          <div>
            <h3>#${escapeHtml(evt.eventNumber)} ${escapeHtml(evt.Heading || "Untitled Event")}
              <span class="pill">${evt.reverse ? "Reverse layout" : "Normal layout"}</span></h3>
            <p>${escapeHtml(desc.slice(0, 150))}${desc.length > 150 ? "..." : ""}</p>
            <p>${escapeHtml(evt.date || "No date")} · ${(evt.images || []).length} images
              · ${evt.formLink ? "Form ✓" : "No form"} · ${evt.qrLink ? "QR ✓" : "No QR"}</p>
          </div>
          <div class="actions">
            <button type="button" data-action="edit">Edit</button>
            <button type="button" class="danger" data-action="delete">Delete</button>
          </div>`;
        div.querySelector('[data-action="edit"]').onclick = () => beginEdit(evt);
        div.querySelector('[data-action="delete"]').onclick = () => deleteEvent(evt.id);
        box.appendChild(div);
      });
    }

    async function loadEvents() {
      try {
        setStatus("Loading events...", "loading");
        const data = await api.request("/events");
        renderEvents(Array.isArray(data) ? data : []);
        setStatus("Events loaded", "success");
      } catch (err) {
        setStatus("Failed to load events: " + err.message, "error");
      }
    }

    async function deleteEvent(id) {
      if (!confirm("Delete this event?")) return;
      try {
        await api.json(`/events/${encodeURIComponent(id)}`, "DELETE");
        if (form.targetId === id) resetForm();
        setStatus("Event deleted", "success");
        loadEvents();
      } catch (err) {
        setStatus("Delete failed: " + err.message, "error");
      }
    }

    el("event-form").addEventListener("submit", async (e) => {
      e.preventDefault();
      const fields = {
        Heading: el("heading").value.trim(),
        Description: el("description").value.trim(),
        date: el("date").value.trim(),
        formLink: el("formLink").value.trim(),
        qrLink: el("qrLink").value.trim(),
        reverse: el("reverse").value === "true",
      };
      if (!fields.Heading || !fields.Description) {
        setStatus("Heading and Description are required", "error");
        return;
      }
      try {
        setStatus("Uploading images...", "loading");
        const uploaded = await api.upload(Array.from(el("images").files || []));
        setStatus("Saving...", "loading");
        if (form.mode === "edit") {
          const kept = form.existingImages.filter((u) => !form.removed.has(u));
          await api.json(`/events/${encodeURIComponent(form.targetId)}`, "PUT", { ...fields, images: [...kept, ...uploaded] });
          setStatus("Event updated", "success");
        } else {
          await api.json("/events", "POST", { ...fields, imageUrls: uploaded });
          setStatus("Event created", "success");
        }
        resetForm();
        loadEvents();
      } catch (err) {
        setStatus("Error: " + err.message, "error");
      }
    });

    el("cancel-edit").onclick = resetForm;
    el("refresh").onclick = loadEvents;
    checkSession();
    loadEvents();
"""

_BLOGS_BODY = r"""
    <section>
      <h2 id="form-title">New Blog Post</h2>
      <form id="blog-form">
        <label>Title<input id="title" name="title" required /></label>
        <label>Tag<input id="tag" name="tag" value="Blog" /></label>
        <label>Date<input id="date" name="date" /></label>
        <label>Read time<input id="readTime" name="readTime" /></label>
        <label>Image<input id="image" type="file" accept="image/*" /></label>
        <label class="wide">Excerpt<textarea id="excerpt" name="excerpt" required></textarea></label>
        <label class="wide">Content<textarea id="content" name="content"></textarea></label>
        <div id="image-preview" class="thumbs"></div>
        <div class="actions">
          <button class="primary" type="submit" id="submit-btn">Create Blog Post</button>
          <button type="button" id="cancel-edit" class="hidden">Cancel edit</button>
          <span id="status"></span>
        </div>
      </form>
    </section>
    <section>
      <h2>Blog posts <button type="button" id="refresh">Refresh</button></h2>
      <div id="blog-list"></div>
      <p id="empty-state" class="muted hidden">No blog posts yet.</p>
    </section>
"""

_BLOGS_SCRIPT = r"""
    let form = { ...newFormState(), existingImage: null, imageRemoved: false };
    const el = (id) => document.getElementById(id);

    function renderImagePreview() {
      const box = el("image-preview");
      box.innerHTML = "";
      const file = el("image").files?.[0];
      if (file) {
        box.innerHTML = `<div class="thumb"><img src="${URL.createObjectURL(file)}" alt="" /></div>`;
        return;
      }
      if (form.existingImage && !form.imageRemoved) {
        const div = document.createElement("div");
        div.className = "thumb";
        div.innerHTML = `<img src="${escapeHtml(form.existingImage)}" alt="" /><button type="button" title="Remove image">&times;</button>`;
        div.querySelector("button").onclick = () => { form.imageRemoved = true; renderImagePreview(); };
        box.appendChild(div);
      } else if (form.imageRemoved) {
        box.innerHTML = '<p class="muted">Image will be removed when you save.</p>';
      }
    }
    el("image").addEventListener("change", renderImagePreview);

    function resetForm() {
      form = { ...newFormState(), existingImage: null, imageRemoved: false };
      el("blog-form").reset();
      renderImagePreview();
      el("form-title").textContent = "New Blog Post";
      el("submit-btn").textContent = "Create Blog Post";
      el("cancel-edit").classList.add("hidden");
    }

    function beginEdit(blog) {
      form = { ...newFormState(), mode: "edit", targetId: blog.id, existingImage: blog.image || null, imageRemoved: false };
      ["title", "date", "readTime", "excerpt"].forEach((k) => { el(k).value = blog[k] || ""; });
      el("tag").value = blog.tag || "Blog";
      el("content").value = typeof blog.content === "string" ? blog.content : JSON.stringify(blog.content || "");
      el("image").value = "";
      renderImagePreview();
      el("form-title").textContent = "Edit Blog Post";
      el("submit-btn").textContent = "Update Blog Post";
      el("cancel-edit").classList.remove("hidden");
      el("blog-form").scrollIntoView({ behavior: "smooth" });
    }

    function renderBlogs(list) {
      const box = el("blog-list");
      box.innerHTML = "";
      el("empty-state").classList.toggle("hidden", list.length > 0);
      list.forEach((b) => {
        const div = document.createElement("div");
        div.className = "list-item";
        div.innerHTML = `
          <div>
            <h3>${escapeHtml(b.title || "Untitled Post")}<span class="pill">${escapeHtml(b.tag || "Blog")}</span></h3>
            <p>${escapeHtml(b.excerpt || "No description available")}</p>
            <p>${escapeHtml(b.date || "No date")}${b.readTime ? " · " + escapeHtml(b.readTime) : ""}</p>
          </div>
          <div class="actions">
            <button type="button" data-action="edit">Edit</button>
            <button type="button" class="danger" data-action="delete">Delete</button>
          </div>`;
        div.querySelector('[data-action="edit"]').onclick = () => beginEdit(b);
        div.querySelector('[data-action="delete"]').onclick = () => deleteBlog(b.id);
        box.appendChild(div);
      });
    }

    async function loadBlogs() {
      try {
        setStatus("Loading blogs...", "loading");
        const data = await api.request("/blogs");
        renderBlogs(Array.isArray(data) ? data : []);
        setStatus("Blogs loaded", "success");
      } catch (err) {
        setStatus("Failed to load blogs: " + err.message, "error");
      }
    }

    async function deleteBlog(id) {
      if (!confirm("Delete this blog post? This cannot be undone.")) return;
      try {
        await api.json(`/blogs/${encodeURIComponent(id)}`, "DELETE");
        if (form.targetId === id) resetForm();
        setStatus("Blog post deleted", "success");
        loadBlogs();
      } catch (err) {
        setStatus("Delete failed: " + err.message, "error");
      }
    }

    el("blog-form").addEventListener("submit", async (e) => {
      e.preventDefault();
      const payload = {};
      ["title", "tag", "date", "readTime", "excerpt", "content"].forEach((k) => { payload[k] = el(k).value.trim(); });
      if (!payload.title || !payload.excerpt) {
        setStatus("Title and excerpt are required", "error");
        return;
      }
      try {
        const file = el("image").files?.[0];
        let uploaded = null;
        if (file) {
          setStatus("Uploading image...", "loading");
          [uploaded] = await api.upload([file]);
        }
        if (uploaded) payload.image = uploaded;
        else if (form.mode === "edit" && form.imageRemoved) payload.image = null;
        setStatus("Saving blog post...", "loading");
        if (form.mode === "edit") {
          await api.json(`/blogs/${encodeURIComponent(form.targetId)}`, "PUT", payload);
          setStatus("Blog post updated", "success");
        } else {
          await api.json("/blogs", "POST", payload);
          setStatus("Blog post saved", "success");
        }
        resetForm();
        loadBlogs();
      } catch (err) {
        setStatus("Failed to save blog: " + err.message, "error");
      }
    });

    el("cancel-edit").onclick = resetForm;
    el("refresh").onclick = loadBlogs;
    checkSession();
    loadBlogs();
"""


def _page(title: str, body: str, script: str) -> str:
    return (
        "<!doctype html>\n<html lang=\"en\">\n<head>\n"
        "  <meta charset=\"utf-8\" />\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />\n"
        f"  <title>{title}</title>\n"
        + _STYLE
        + "</head>\n<body>\n  <div class=\"page\">\n"
        + f"    <header>\n      <h1>{title}</h1>\n"
        + "      <nav>\n"
        + "        <a href=\"/admin\">Events</a>\n"
        + "        <a href=\"/admin/blogs\">Blog posts</a>\n"
        + "        <button type=\"button\" id=\"logout\" class=\"hidden\">Sign out</button>\n"
        + "      </nav>\n    </header>\n"
        + _LOGIN_SECTION
        + body
        + "  </div>\n  <script>\n"
        + _COMMON_SCRIPT
        + script
        + "  </script>\n</body>\n</html>\n"
    )


EVENTS_ADMIN_HTML = _page("Events Admin", _EVENTS_BODY, _EVENTS_SCRIPT)
BLOGS_ADMIN_HTML = _page("Blog Admin", _BLOGS_BODY, _BLOGS_SCRIPT)

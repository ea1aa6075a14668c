"""HTML shell served for every page route.

The page holds no data of its own. It opens /ws, sends hello with the current
path and the persisted refresh token, and renders whatever view the server
pushes. Every DOM node is built with textContent, so store data is never
interpreted as markup.
"""

import html

_SHELL = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>__APP_NAME__</title>
    <style>
        * { box-sizing: border-box; }
        body {
            font-family: system-ui, -apple-system, 'Segoe UI', sans-serif;
            margin: 0;
            min-height: 100vh;
            background: #22333B;
            color: #f0f0f0;
        }
        header.bar {
            display: flex;
            justify-content: space-between;
            align-items: center;
            padding: 1rem 1.5rem;
            background: #1b2a30;
            border-bottom: 1px solid #2E4A4E;
        }
        header.bar h1 { font-size: 1.25rem; margin: 0; letter-spacing: 0.02em; }
        header.bar nav a { color: #cfe3e0; margin-left: 1rem; text-decoration: none; }
        main { max-width: 960px; margin: 0 auto; padding: 2rem 1rem; }
        .card {
            background: #2E4A4E;
            border-radius: 12px;
            padding: 1.25rem 1.5rem;
            margin-bottom: 1.25rem;
        }
        .card h2 { margin: 0 0 1rem 0; font-size: 1.05rem; }
        .stats { display: grid; grid-template-columns: repeat(3, 1fr); gap: 1rem; }
        .stat { text-align: center; }
        .stat .value { font-size: 1.75rem; font-weight: 600; }
        .stat .label { color: #a9c3bf; font-size: 0.85rem; }
        form.stack { display: flex; flex-direction: column; gap: 0.6rem; max-width: 360px; }
        form.inline { display: flex; flex-wrap: wrap; gap: 0.5rem; margin-top: 1rem; }
        input, select, textarea {
            padding: 0.55rem 0.7rem;
            border-radius: 6px;
            border: 1px solid #46666b;
            background: #1b2a30;
            color: #f0f0f0;
            font: inherit;
        }
        input[readonly] { opacity: 0.6; }
        button {
            padding: 0.55rem 1rem;
            border-radius: 6px;
            border: 0;
            background: #5fa8a0;
            color: #0e1a1d;
            font-weight: 600;
            cursor: pointer;
        }
        button.secondary { background: #46666b; color: #f0f0f0; }
        button.danger { background: #c0504d; color: #fff; }
        button:disabled { opacity: 0.5; cursor: default; }
        table { width: 100%; border-collapse: collapse; }
        th, td { text-align: left; padding: 0.5rem; border-bottom: 1px solid #3b5a5f; }
        th { color: #a9c3bf; font-weight: 500; font-size: 0.85rem; }
        .muted { color: #a9c3bf; }
        .center { display: flex; flex-direction: column; align-items: center; padding-top: 20vh; }
        #toasts { position: fixed; right: 1rem; bottom: 1rem; display: flex; flex-direction: column; gap: 0.5rem; }
        .toast { padding: 0.7rem 1rem; border-radius: 8px; min-width: 240px; box-shadow: 0 4px 12px rgba(0,0,0,.35); }
        .toast.success { background: #2f7d4f; }
        .toast.error { background: #a33a37; }
        .toast.info { background: #3b5a5f; }
    </style>
</head>
<body>
    <header class="bar">
        <h1>__APP_NAME__</h1>
        <nav id="nav"></nav>
    </header>
    <main id="app"><div class="center"><p class="muted">Connecting...</p></div></main>
    <div id="toasts" aria-live="polite"></div>
    <script>
    (function () {
        var TOKEN_KEY = 'reware.refresh_token';
        var app = document.getElementById('app');
        var nav = document.getElementById('nav');
        var toasts = document.getElementById('toasts');
        var ws = null;

        function h(tag, attrs) {
            var el = document.createElement(tag);
            attrs = attrs || {};
            Object.keys(attrs).forEach(function (key) {
                var value = attrs[key];
                if (value === null || value === undefined || value === false) return;
                if (key.indexOf('on') === 0) el.addEventListener(key.slice(2), value);
                else if (key === 'text') el.textContent = value;
                else el.setAttribute(key, value === true ? '' : value);
            });
            for (var i = 2; i < arguments.length; i++) {
                var child = arguments[i];
                if (child === null || child === undefined || child === false) continue;
                if (Array.isArray(child)) child.forEach(function (c) { if (c) el.appendChild(c); });
                else el.appendChild(typeof child === 'string' ? document.createTextNode(child) : child);
            }
            return el;
        }

        function send(message) {
            if (ws && ws.readyState === WebSocket.OPEN) ws.send(JSON.stringify(message));
        }

        function go(path) {
            if (path !== window.location.pathname) window.history.pushState({}, '', path);
            send({type: 'navigate', path: path});
        }

        function link(path, label) {
            return h('a', {href: path, onclick: function (e) { e.preventDefault(); go(path); }, text: label});
        }

        function field(form, name) {
            var el = form.elements.namedItem(name);
            return el ? el.value : '';
        }

        function toast(note) {
            var el = h('div', {'class': 'toast ' + note.level, text: note.message});
            toasts.appendChild(el);
            setTimeout(function () { el.remove(); }, 5000);
        }

        function renderNav(frame) {
            nav.replaceChildren();
            if (frame.session.status === 'authenticated') {
                nav.appendChild(link('/dashboard', 'Dashboard'));
                if (frame.view === 'dashboard' && frame.state.isAdmin) nav.appendChild(link('/admin', 'Admin'));
            } else if (frame.session.status === 'anonymous') {
                nav.appendChild(link('/login', 'Login'));
                nav.appendChild(link('/signup', 'Sign Up'));
            }
        }

        function loadingView(text) {
            return h('div', {'class': 'center'}, h('p', {'class': 'muted', text: text}));
        }

        function loginView(state) {
            var form = h('form', {'class': 'stack', onsubmit: function (e) {
                    e.preventDefault();
                    send({type: 'sign_in', email: field(form, 'email'), password: field(form, 'password')});
                }},
                h('input', {name: 'email', type: 'email', placeholder: 'Email', required: true}),
                h('input', {name: 'password', type: 'password', placeholder: 'Password', required: true}),
                h('button', {type: 'submit', disabled: state.pending, text: state.pending ? 'Signing in...' : 'Log In'}));
            return h('div', {'class': 'card'}, h('h2', {text: 'Log In'}), form,
                h('p', {'class': 'muted'}, 'No account? ', link('/signup', 'Sign up')));
        }

        function signupView(state) {
            var form = h('form', {'class': 'stack', onsubmit: function (e) {
                    e.preventDefault();
                    send({type: 'sign_up', display_name: field(form, 'display_name'),
                          email: field(form, 'email'), password: field(form, 'password')});
                }},
                h('input', {name: 'display_name', placeholder: 'Display name'}),
                h('input', {name: 'email', type: 'email', placeholder: 'Email', required: true}),
                h('input', {name: 'password', type: 'password', placeholder: 'Password (6+ characters)', required: true}),
                h('button', {type: 'submit', disabled: state.pending, text: state.pending ? 'Creating account...' : 'Sign Up'}));
            return h('div', {'class': 'card'}, h('h2', {text: 'Create an account'}), form,
                h('p', {'class': 'muted'}, 'Already registered? ', link('/login', 'Log in')));
        }

        function stat(value, label) {
            return h('div', {'class': 'stat'}, h('div', {'class': 'value', text: String(value)}),
                h('div', {'class': 'label', text: label}));
        }

        function itemTable(items, columns, onDelete, emptyText) {
            if (!items.length) return h('p', {'class': 'muted', text: emptyText});
            return h('table', {},
                h('thead', {}, h('tr', {}, columns.map(function (c) { return h('th', {text: c[1]}); }), h('th', {}))),
                h('tbody', {}, items.map(function (item) {
                    return h('tr', {'data-id': item.id},
                        columns.map(function (c) { return h('td', {text: item[c[0]] === null ? '' : String(item[c[0]])}); }),
                        h('td', {}, h('button', {'class': 'danger', onclick: function () { onDelete(item.id); }, text: 'Delete'})));
                })));
        }

        function dashboardView(state) {
            var profile = state.profile || {};
            var listingForm = h('form', {'class': 'inline', onsubmit: function (e) {
                    e.preventDefault();
                    send({type: 'create_listing', title: field(listingForm, 'title'), price: field(listingForm, 'price'),
                          description: field(listingForm, 'description'), condition: field(listingForm, 'condition')});
                    listingForm.reset();
                }},
                h('input', {name: 'title', placeholder: 'Title', required: true}),
                h('input', {name: 'description', placeholder: 'Description'}),
                h('input', {name: 'price', placeholder: 'Price', required: true}),
                h('select', {name: 'condition'}, state.conditions.map(function (c) { return h('option', {value: c, text: c}); })),
                h('button', {type: 'submit', text: 'Add Listing'}));
            var purchaseForm = h('form', {'class': 'inline', onsubmit: function (e) {
                    e.preventDefault();
                    send({type: 'create_purchase', title: field(purchaseForm, 'title'), price: field(purchaseForm, 'price')});
                    purchaseForm.reset();
                }},
                h('input', {name: 'title', placeholder: 'Title', required: true}),
                h('input', {name: 'price', placeholder: 'Price', required: true}),
                h('button', {type: 'submit', text: 'Record Purchase'}));
            return h('div', {},
                h('div', {'class': 'card'},
                    h('h2', {text: 'Welcome, ' + (profile.displayName || 'User')}),
                    h('div', {'class': 'stats'},
                        stat(state.stats.points, 'Points'),
                        stat(state.stats.listings, 'Listings'),
                        stat(state.stats.purchases, 'Purchases')),
                    h('p', {}, h('button', {'class': 'secondary', onclick: function () { send({type: 'sign_out'}); }, text: 'Log Out'}))),
                h('div', {'class': 'card'}, h('h2', {text: 'My Listings'}),
                    state.loading.listings ? h('p', {'class': 'muted', text: 'Loading listings...'}) :
                        itemTable(state.listings, [['title', 'Title'], ['price', 'Price'], ['condition', 'Condition'], ['pointsEarned', 'Points']],
                            function (id) { send({type: 'delete_listing', listing_id: id}); }, 'No listings yet.'),
                    listingForm),
                h('div', {'class': 'card'}, h('h2', {text: 'My Purchases'}),
                    state.loading.purchases ? h('p', {'class': 'muted', text: 'Loading purchases...'}) :
                        itemTable(state.purchases, [['title', 'Title'], ['price', 'Price']],
                            function (id) { send({type: 'delete_purchase', purchase_id: id}); }, 'No purchases yet.'),
                    purchaseForm));
        }

        function adminRow(user, state) {
            var editing = state.editing && state.editing.userId === user.id ? state.editing : null;
            if (!editing) {
                return h('tr', {'data-id': user.id},
                    h('td', {text: user.displayName}), h('td', {text: user.email}),
                    h('td', {text: user.role}), h('td', {text: String(user.points)}),
                    h('td', {},
                        h('button', {'class': 'secondary', onclick: function () { send({type: 'begin_edit', user_id: user.id}); }, text: 'Edit'}), ' ',
                        h('button', {'class': 'danger', onclick: function () {
                            if (window.confirm('Are you sure you want to delete this user?')) send({type: 'delete_user', user_id: user.id});
                        }, text: 'Delete'})));
            }
            var nameInput = h('input', {value: editing.displayName, onchange: function () {
                send({type: 'change_edit', display_name: nameInput.value});
            }});
            var roleSelect = h('select', {onchange: function () { send({type: 'change_edit', role: roleSelect.value}); }},
                state.roles.map(function (r) { return h('option', {value: r, selected: r === editing.role, text: r}); }));
            return h('tr', {'data-id': user.id},
                h('td', {}, nameInput), h('td', {}, h('input', {value: editing.email, readonly: true})),
                h('td', {}, roleSelect), h('td', {text: String(user.points)}),
                h('td', {},
                    h('button', {onclick: function () {
                        send({type: 'change_edit', display_name: nameInput.value, role: roleSelect.value});
                        send({type: 'save_edit'});
                    }, text: 'Save'}), ' ',
                    h('button', {'class': 'secondary', onclick: function () { send({type: 'cancel_edit'}); }, text: 'Cancel'})));
        }

        function adminView(state) {
            if (state.access !== 'granted') {
                return loadingView(state.access === 'failed' ? 'Could not verify admin privileges.' : 'Checking admin privileges...');
            }
            return h('div', {'class': 'card'},
                h('h2', {text: 'User Management'}),
                h('p', {}, h('button', {'class': 'secondary', onclick: function () { send({type: 'refresh_users'}); }, text: 'Refresh'})),
                state.loading ? h('p', {'class': 'muted', text: 'Loading users...'}) :
                    h('table', {},
                        h('thead', {}, h('tr', {}, ['Name', 'Email', 'Role', 'Points', ''].map(function (t) { return h('th', {text: t}); }))),
                        h('tbody', {}, state.users.map(function (u) { return adminRow(u, state); }))));
        }

        function render(frame) {
            if (frame.path !== window.location.pathname) window.history.replaceState({}, '', frame.path);
            renderNav(frame);
            var view;
            if (frame.view === 'login') view = loginView(frame.state);
            else if (frame.view === 'signup') view = signupView(frame.state);
            else if (frame.view === 'dashboard') view = dashboardView(frame.state);
            else if (frame.view === 'admin') view = adminView(frame.state);
            else if (frame.view === 'not_found') view = h('div', {'class': 'card'}, h('h2', {text: 'Page not found'}), link('/', 'Go home'));
            else view = loadingView('Checking authentication status...');
            app.replaceChildren(view);
            (frame.notifications || []).forEach(toast);
        }

        function connect() {
            var scheme = window.location.protocol === 'https:' ? 'wss://' : 'ws://';
            ws = new WebSocket(scheme + window.location.host + '/ws');
            ws.onopen = function () {
                send({type: 'hello', path: window.location.pathname, refresh_token: window.localStorage.getItem(TOKEN_KEY)});
            };
            ws.onmessage = function (event) {
                var frame = JSON.parse(event.data);
                if (frame.type === 'credentials') {
                    if (frame.refresh_token) window.localStorage.setItem(TOKEN_KEY, frame.refresh_token);
                    else window.localStorage.removeItem(TOKEN_KEY);
                } else if (frame.type === 'render') {
                    render(frame);
                }
            };
            ws.onclose = function () {
                toast({level: 'info', message: 'Connection lost. Reconnecting...'});
                setTimeout(connect, 2000);
            };
        }

        window.addEventListener('popstate', function () { send({type: 'navigate', path: window.location.pathname}); });
        connect();
    })();
    </script>
</body>
</html>
""".strip()


def render_shell_page(app_name: str) -> str:
    """Return the HTML shell for every page route."""
    return _SHELL.replace("__APP_NAME__", html.escape(app_name))

"""Single-page form UI served at ``/``."""

INDEX_HTML = """
<!DOCTYPE html>
<html>
<head>
    <title>profilehub</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body { font-family: Arial, sans-serif; max-width: 960px; margin: 40px auto; padding: 20px; }
        .section { margin: 20px 0; padding: 15px; border: 1px solid #ddd; border-radius: 5px; }
        label { display: block; margin: 8px 0 2px; }
        input, select { padding: 6px; width: 100%; box-sizing: border-box; }
        .inline label { display: inline-block; margin-right: 12px; }
        .inline input { width: auto; }
        button { padding: 8px 16px; margin: 8px 4px 0 0; cursor: pointer; }
        table { width: 100%; border-collapse: collapse; margin-top: 10px; }
        th, td { padding: 8px; text-align: left; border-bottom: 1px solid #ddd; vertical-align: middle; }
        th { background-color: #f2f2f2; }
        img.avatar { width: 48px; height: 48px; object-fit: cover; border-radius: 50%; }
        #status { min-height: 1.5em; }
        .error { color: #b00020; }
        .hidden { display: none; }
    </style>
</head>
<body>
    <h1>profilehub</h1>
    <div id="status"></div>

    <div class="section" id="auth-section">
        <h2>Register</h2>
        <form id="register-form">
            <label>First name</label><input name="firstName" required>
            <label>Last name</label><input name="lastName" required>
            <label>Email</label><input name="email" type="email" required>
            <label>Password</label><input name="password" type="password" minlength="6" required>
            <label>Date of birth</label><input name="dob" type="date" required>
            <label>Gender</label>
            <select name="gender" required>
                <option value="male">Male</option>
                <option value="female">Female</option>
                <option value="other">Other</option>
            </select>
            <label>Hobbies</label>
            <div class="inline">
                <label><input type="checkbox" name="hobbies" value="Reading"> Reading</label>
                <label><input type="checkbox" name="hobbies" value="Sports"> Sports</label>
                <label><input type="checkbox" name="hobbies" value="Music"> Music</label>
                <label><input type="checkbox" name="hobbies" value="Travel"> Travel</label>
                <label><input type="checkbox" name="hobbies" value="Gaming"> Gaming</label>
            </div>
            <label>Photo</label><input name="photo" type="file" accept="image/jpeg,image/png,image/gif" required>
            <button type="submit">Register</button>
        </form>

        <h2>Login</h2>
        <form id="login-form">
            <label>Email</label><input name="email" type="email" required>
            <label>Password</label><input name="password" type="password" required>
            <button type="submit">Login</button>
        </form>
    </div>

    <div class="section hidden" id="users-section">
        <h2>Users <button onclick="logout()">Logout</button></h2>
        <div id="users"></div>
    </div>

    <div class="section hidden" id="edit-section">
        <h2>Edit user</h2>
        <form id="edit-form">
            <input type="hidden" name="userId">
            <label>First name</label><input name="firstName">
            <label>Last name</label><input name="lastName">
            <label>Date of birth</label><input name="dob" type="date">
            <label>Gender</label>
            <select name="gender">
                <option value="male">Male</option>
                <option value="female">Female</option>
                <option value="other">Other</option>
            </select>
            <label>Hobbies (comma separated)</label><input name="hobbiesText">
            <label>New photo</label><input name="photo" type="file" accept="image/jpeg,image/png,image/gif">
            <button type="submit">Save</button>
            <button type="button" onclick="hideEdit()">Cancel</button>
        </form>
    </div>

    <script>
        const statusEl = document.getElementById('status');
        let users = [];

        function token() { return localStorage.getItem('token'); }

        function showStatus(text, isError) {
            statusEl.textContent = text;
            statusEl.className = isError ? 'error' : '';
        }

        function describeError(data) {
            if (data.errors && data.errors.length) {
                return data.errors.map(e => e.field + ': ' + e.message).join('; ');
            }
            return data.message || 'Request failed';
        }

        async function call(path, options) {
            options = options || {};
            options.headers = options.headers || {};
            if (token()) { options.headers['Authorization'] = 'Bearer ' + token(); }
            const response = await fetch(path, options);
            const data = await response.json();
            if (response.status === 401 && token()) { logout(); }
            if (!response.ok) { throw new Error(describeError(data)); }
            return data;
        }

        function escapeHtml(value) {
            const div = document.createElement('div');
            div.textContent = value == null ? '' : String(value);
            return div.innerHTML;
        }

        function afterLogin(data) {
            localStorage.setItem('token', data.token);
            showStatus(data.message);
            render();
        }

        document.getElementById('register-form').addEventListener('submit', async (event) => {
            event.preventDefault();
            showStatus('Registering...');
            try {
                afterLogin(await call('/auth/register', { method: 'POST', body: new FormData(event.target) }));
                event.target.reset();
            } catch (error) {
                showStatus('Error: ' + error.message, true);
            }
        });

        document.getElementById('login-form').addEventListener('submit', async (event) => {
            event.preventDefault();
            const form = new FormData(event.target);
            try {
                afterLogin(await call('/auth/login', {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    body: JSON.stringify({ email: form.get('email'), password: form.get('password') })
                }));
            } catch (error) {
                showStatus('Error: ' + error.message, true);
            }
        });

        async function loadUsers() {
            const container = document.getElementById('users');
            try {
                const data = await call('/users');
                users = data.users;
                if (!users.length) {
                    container.innerHTML = '<p>No users yet.</p>';
                    return;
                }
                let html = '<table><tr><th></th><th>Name</th><th>Email</th><th>Gender</th><th>Hobbies</th><th></th></tr>';
                users.forEach(user => {
                    const photo = user.photo ? `<img class="avatar" src="${escapeHtml(user.photo)}">` : '';
                    html += `<tr>
                        <td>${photo}</td>
                        <td>${escapeHtml(user.firstName)} ${escapeHtml(user.lastName)}</td>
                        <td>${escapeHtml(user.email)}</td>
                        <td>${escapeHtml(user.gender)}</td>
                        <td>${escapeHtml((user.hobbies || []).join(', '))}</td>
                        <td>
                            <button onclick="showEdit('${user.id}')">Edit</button>
                            <button onclick="deleteUser('${user.id}')">Delete</button>
                        </td>
                    </tr>`;
                });
                container.innerHTML = html + '</table>';
            } catch (error) {
                container.innerHTML = '<p class="error">Error: ' + escapeHtml(error.message) + '</p>';
            }
        }

        function showEdit(userId) {
            const user = users.find(u => u.id === userId);
            if (!user) { return; }
            const form = document.getElementById('edit-form');
            form.userId.value = user.id;
            form.firstName.value = user.firstName;
            form.lastName.value = user.lastName;
            form.dob.value = (user.dob || '').slice(0, 10);
            form.gender.value = user.gender;
            form.hobbiesText.value = (user.hobbies || []).join(', ');
            form.photo.value = '';
            document.getElementById('edit-section').classList.remove('hidden');
        }

        function hideEdit() {
            document.getElementById('edit-section').classList.add('hidden');
        }

        document.getElementById('edit-form').addEventListener('submit', async (event) => {
            event.preventDefault();
            const form = event.target;
            const body = new FormData();
            ['firstName', 'lastName', 'dob', 'gender'].forEach(name => {
                if (form[name].value) { body.append(name, form[name].value); }
            });
            form.hobbiesText.value.split(',').map(h => h.trim()).filter(Boolean)
                .forEach(h => body.append('hobbies', h));
            if (form.photo.files.length) { body.append('photo', form.photo.files[0]); }
            try {
                const data = await call('/users/' + form.userId.value, { method: 'PUT', body: body });
                showStatus(data.message);
                hideEdit();
                loadUsers();
            } catch (error) {
                showStatus('Error: ' + error.message, true);
            }
        });

        async function deleteUser(userId) {
            if (!confirm('Delete this user? This cannot be undone.')) { return; }
            try {
                const data = await call('/users/' + userId, { method: 'DELETE' });
                showStatus(data.message);
                loadUsers();
            } catch (error) {
                showStatus('Error: ' + error.message, true);
            }
        }

        function logout() {
            localStorage.removeItem('token');
            render();
        }

        function render() {
            const loggedIn = Boolean(token());
            document.getElementById('auth-section').classList.toggle('hidden', loggedIn);
            document.getElementById('users-section').classList.toggle('hidden', !loggedIn);
            if (!loggedIn) { hideEdit(); return; }
            loadUsers();
        }

        render();
    </script>
</body>
</html>
"""
